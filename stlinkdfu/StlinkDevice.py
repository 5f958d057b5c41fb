import logging
import struct
import time

from .DfuState import DfuState, DfuStatus, StatusReply
from .FlashLayout import sector_range
from .StlinkCipher import encrypt, BLOCK_SIZE
from .StlinkErrors import (StlinkError, ProtocolError, DeviceError,
                           ReadProtectionError, TargetAddressError, GeometryError)
from .StlinkInfo import read_infos, current_mode

logger = logging.getLogger(__name__)

DFU_COMMAND = 0xf3

DFU_DNLOAD    = 0x01
DFU_GETSTATUS = 0x03
DFU_EXIT      = 0x07

SET_ADDRESS_POINTER_COMMAND = 0x21
ERASE_PAGES_COMMAND = 0x41
ERASE_SECTORS_COMMAND = 0x42

# wBlockNum values from 2 up carry firmware data
DATA_BLOCK = 2

V3_PAYLOAD_KEY = b" .ST-Link.ver.3."

def checksum(data):
    return sum(data) & 0xffff

def address_command(opcode, address):
    if not 0 <= address <= 0xffffffff:
        raise GeometryError("Address %#x does not fit in 32 bits" % address)
    return struct.pack('<BI', opcode, address)

class StlinkDevice:
    def __init__(self, transport, cipher=encrypt):
        self.transport = transport
        self.cipher = cipher
        self.infos = None

    def read_infos(self):
        if self.infos is None:
            self.infos = read_infos(self.transport, self.cipher)
        return self.infos

    def current_mode(self):
        return current_mode(self.transport)

    def dfu_request(self, request, value=0, index=0, length=0):
        return struct.pack('<BBHHH', DFU_COMMAND, request, value, index, length).ljust(16, b'\x00')

    def get_status(self):
        self.transport.write(self.dfu_request(DFU_GETSTATUS, length=6))
        return StatusReply.decode(self.transport.read(6))

    def dnload(self, data, block_num):
        """Send one DFU_DNLOAD block and wait until the probe committed it."""
        data = bytes(data)
        if block_num >= DATA_BLOCK:
            if self.infos is None:
                raise StlinkError("Firmware key unknown, read the probe infos first")
            if self.infos.stlink_version == 3:
                data = self.cipher(V3_PAYLOAD_KEY, data)

        request = self.dfu_request(DFU_DNLOAD, block_num, checksum(data), len(data))

        if block_num >= DATA_BLOCK:
            data = self.cipher(self.infos.firmware_key, data)

        self.transport.write(request)
        self.transport.write(data)

        reply = self.get_status()
        self._expect_busy(reply)
        time.sleep(reply.poll_timeout / 1000)
        self._expect_idle(self.get_status())

    def _expect_busy(self, reply):
        if reply.state != DfuState.DFU_DOWNLOAD_BUSY:
            raise ProtocolError("Unexpected DFU state: %s" % DfuState.string(reply.state), reply)
        if reply.status != DfuStatus.OK:
            raise ProtocolError("Unexpected DFU status: %s" % DfuStatus.string(reply.status), reply)
        logger.debug("Download accepted, waiting %d ms", reply.poll_timeout)

    def _expect_idle(self, reply):
        if reply.state == DfuState.DFU_DOWNLOAD_IDLE:
            return
        if reply.status == DfuStatus.ERR_VENDOR:
            raise ReadProtectionError("Read-only protection active", reply)
        elif reply.status == DfuStatus.ERR_TARGET:
            raise TargetAddressError("Invalid address error", reply)
        else:
            raise DeviceError("Unknown error: %s" % (reply,), reply)

    def set_address(self, address):
        return self.dnload(address_command(SET_ADDRESS_POINTER_COMMAND, address), 0)

    def erase_pages(self, address):
        logger.debug("Erasing page at 0x%.8x", address)
        return self.dnload(address_command(ERASE_PAGES_COMMAND, address), 0)

    def erase_sectors(self, address, size):
        sectors = sector_range(self.read_infos().product_id, address, size)
        for sector in sectors:
            logger.debug("Erasing sector %d", sector)
            self.dnload(bytes([ERASE_SECTORS_COMMAND, sector & 0xff, 0, 0, 0]), 0)

    def flash(self, data, base_address, chunk_size, progress=None):
        """Erase and write data at base_address, chunk_size bytes per block.

        A failure leaves the probe with a partially written image.
        """
        if not data:
            raise ValueError("Firmware image is empty")
        if chunk_size <= 0 or chunk_size % BLOCK_SIZE:
            raise ValueError("Chunk size must be a positive multiple of %d" % BLOCK_SIZE)

        infos = self.read_infos()
        if infos.stlink_version == 3:
            logger.info("Erasing 0x%.8x-0x%.8x", base_address, base_address + len(data) - 1)
            self.erase_sectors(base_address, len(data))

        for offset in range(0, len(data), chunk_size):
            address = base_address + offset
            if infos.stlink_version < 3:
                self.erase_pages(address)
            self.set_address(address)

            chunk = bytes(data[offset:offset + chunk_size]).ljust(chunk_size, b'\xff')
            logger.debug("Writing %d bytes at 0x%.8x", chunk_size, address)
            self.dnload(chunk, DATA_BLOCK)

            if progress is not None:
                progress(min(offset + chunk_size, len(data)), len(data))

    def exit_dfu(self):
        self.transport.write(self.dfu_request(DFU_EXIT))
