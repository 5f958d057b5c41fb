import logging
import usb.core
import usb.util

from .StlinkErrors import TransportError

logger = logging.getLogger(__name__)

STLINK_VID = 0x0483
STLINK_PIDS = (
    0x3748, # V2
    0x374b, # V2-1
    0x3752, # V2-1 without mass storage
    0x374d, # V3 loader
    0x374e, # V3E
    0x374f, # V3
    0x3753, # V3 with two VCPs
)

EP_OUT = 0x01
EP_IN = 0x81

USB_TIMEOUT = 5000

def find_stlink(vid=STLINK_VID, pids=STLINK_PIDS):
    for pid in pids:
        usbdev = usb.core.find(idVendor=vid, idProduct=pid)
        if usbdev is not None:
            logger.debug("Found STLink [%.4x:%.4x]", vid, pid)
            return usbdev

    raise TransportError("No STLink device found, check it is plugged in and "
                         "that you have permission to access it")

class UsbTransport:
    """Bulk endpoint pair of an STLink probe.

    Every transfer is blocking and must move exactly the requested number
    of bytes.
    """
    def __init__(self, device, timeout=USB_TIMEOUT, interface=0):
        self.dev = device
        self.timeout = timeout
        self.interface = interface
        try:
            self.cfg = self.dev[0]
            self.cfg.set()
            usb.util.claim_interface(self.dev, self.interface)
        except usb.core.USBError as e:
            raise TransportError("Cannot open STLink: %s" % e) from e

    def write(self, data):
        try:
            written = self.dev.write(EP_OUT, data, self.timeout)
        except usb.core.USBError as e:
            raise TransportError("USB transfer failure: %s" % e) from e
        if written != len(data):
            raise TransportError("Short USB write: %d/%d bytes" % (written, len(data)))
        logger.debug(">>> %s", bytes(data).hex())
        return written

    def read(self, length):
        try:
            data = bytes(self.dev.read(EP_IN, length, self.timeout))
        except usb.core.USBError as e:
            raise TransportError("USB transfer failure: %s" % e) from e
        if len(data) != length:
            raise TransportError("Short USB read: %d/%d bytes" % (len(data), length))
        logger.debug("<<< %s", data.hex())
        return data

    def close(self):
        usb.util.release_interface(self.dev, self.interface)
        usb.util.dispose_resources(self.dev)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
