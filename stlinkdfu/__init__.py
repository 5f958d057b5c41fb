from .DfuState import DfuState, DfuStatus, StatusReply
from .FlashLayout import address_to_sector, sector_range, sector_size, FLASH_BASE
from .StlinkCipher import encrypt
from .StlinkDevice import StlinkDevice, checksum
from .StlinkErrors import (StlinkError, TransportError, ProtocolError, DeviceError,
                           ReadProtectionError, TargetAddressError, GeometryError)
from .StlinkInfo import (StlinkInfo, read_infos, current_mode, mode_string,
                         MODE_DFU, MODE_BOOTLOADER)
from .StlinkTransport import UsbTransport, find_stlink, STLINK_VID, STLINK_PIDS, USB_TIMEOUT
