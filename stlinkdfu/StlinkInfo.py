import logging
from dataclasses import dataclass

from .StlinkCipher import encrypt

logger = logging.getLogger(__name__)

COMMAND_SIZE = 16

GET_VERSION_COMMAND = b'\xf1\x80'
GET_VERSION_EXT_COMMAND = b'\xfb\x80'
READ_UNIQUE_ID_COMMAND = b'\xf3\x08'
GET_CURRENT_MODE_COMMAND = b'\xf5'

KEY_V2 = b"I am key, wawawa"
KEY_V3 = b" found...STlink "

MODE_DFU = 0x0000
MODE_MASS = 0x0001
MODE_DEBUG = 0x0002
MODE_SWIM = 0x0003
MODE_BOOTLOADER = 0x0004

_mode_names = {
    MODE_DFU: 'DFU',
    MODE_MASS: 'mass storage',
    MODE_DEBUG: 'debug',
    MODE_SWIM: 'SWIM',
    MODE_BOOTLOADER: 'bootloader',
}

def mode_string(mode):
    return _mode_names.get(mode, 'unknown mode 0x%.4x' % mode)

@dataclass(frozen=True)
class StlinkInfo:
    stlink_version: int
    jtag_version: int
    swim_version: int
    loader_version: int
    product_id: int
    device_id: bytes
    firmware_key: bytes

    def version_string(self):
        return "V%dJ%dS%d" % (self.stlink_version, self.jtag_version, self.swim_version)

def command(opcode):
    return opcode.ljust(COMMAND_SIZE, b'\x00')

def query(transport, opcode, reply_size):
    transport.write(command(opcode))
    return transport.read(reply_size)

# Version < 3: everything is packed in the GET_VERSION reply
def _decode_v2(transport, reply):
    return {
        'jtag_version': (reply[0] & 0x0f) << 2 | (reply[1] & 0xc0) >> 6,
        'swim_version': reply[1] & 0x3f,
        'loader_version': reply[5] << 8 | reply[4],
        'product_id': 0,
    }

# Version 3 moved the sub-versions to the extended query
def _decode_v3(transport, reply):
    ext = query(transport, GET_VERSION_EXT_COMMAND, 12)
    return {
        'jtag_version': ext[2],
        'swim_version': ext[1],
        'loader_version': ext[11] << 8 | ext[10],
        'product_id': reply[3] << 8 | reply[2],
    }

def derive_firmware_key(stlink_version, unique_id_reply, cipher=encrypt):
    material = unique_id_reply[0:4] + unique_id_reply[8:20]
    return cipher(KEY_V2 if stlink_version < 3 else KEY_V3, material)

def read_infos(transport, cipher=encrypt):
    """Query versions and identity of the probe and derive its firmware key."""
    reply = query(transport, GET_VERSION_COMMAND, 6)
    stlink_version = reply[0] >> 4
    decode = _decode_v2 if stlink_version < 3 else _decode_v3
    fields = decode(transport, reply)

    uid = query(transport, READ_UNIQUE_ID_COMMAND, 20)
    infos = StlinkInfo(stlink_version=stlink_version,
                       device_id=bytes(uid[8:20]),
                       firmware_key=derive_firmware_key(stlink_version, bytes(uid), cipher),
                       **fields)
    logger.debug("STLink %s, loader %d, product id 0x%.3x",
                 infos.version_string(), infos.loader_version, infos.product_id)
    return infos

def current_mode(transport):
    reply = query(transport, GET_CURRENT_MODE_COMMAND, 2)
    return reply[0] << 8 | reply[1]
