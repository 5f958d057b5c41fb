from collections import namedtuple

class DfuState:
    APP_IDLE = 0x00
    APP_DETACH = 0x01
    DFU_IDLE = 0x02
    DFU_DOWNLOAD_SYNC = 0x03
    DFU_DOWNLOAD_BUSY = 0x04
    DFU_DOWNLOAD_IDLE = 0x05
    DFU_MANIFEST_SYNC = 0x06
    DFU_MANIFEST = 0x07
    DFU_MANIFEST_WAIT_RESET = 0x08
    DFU_UPLOAD_IDLE = 0x09
    DFU_ERROR = 0x0a

    _names = {
        APP_IDLE: 'appIDLE',
        APP_DETACH: 'appDETACH',
        DFU_IDLE: 'dfuIDLE',
        DFU_DOWNLOAD_SYNC: 'dfuDNLOAD-SYNC',
        DFU_DOWNLOAD_BUSY: 'dfuDNBUSY',
        DFU_DOWNLOAD_IDLE: 'dfuDNLOAD-IDLE',
        DFU_MANIFEST_SYNC: 'dfuMANIFEST-SYNC',
        DFU_MANIFEST: 'dfuMANIFEST',
        DFU_MANIFEST_WAIT_RESET: 'dfuMANIFEST-WAIT-RESET',
        DFU_UPLOAD_IDLE: 'dfuUPLOAD-IDLE',
        DFU_ERROR: 'dfuERROR',
    }

    @staticmethod
    def string(state):
        return DfuState._names.get(state, 'unknown state 0x%.2x' % state)

class DfuStatus:
    OK = 0x00
    ERR_TARGET = 0x01
    ERR_FILE = 0x02
    ERR_WRITE = 0x03
    ERR_ERASE = 0x04
    ERR_CHECK_ERASED = 0x05
    ERR_PROG = 0x06
    ERR_VERIFY = 0x07
    ERR_ADDRESS = 0x08
    ERR_NOTDONE = 0x09
    ERR_FIRMWARE = 0x0a
    ERR_VENDOR = 0x0b
    ERR_USBR = 0x0c
    ERR_POR = 0x0d
    ERR_UNKNOWN = 0x0e
    ERR_STALLEDPKT = 0x0f

    _names = {
        OK: 'OK',
        ERR_TARGET: 'errTARGET',
        ERR_FILE: 'errFILE',
        ERR_WRITE: 'errWRITE',
        ERR_ERASE: 'errERASE',
        ERR_CHECK_ERASED: 'errCHECK_ERASED',
        ERR_PROG: 'errPROG',
        ERR_VERIFY: 'errVERIFY',
        ERR_ADDRESS: 'errADDRESS',
        ERR_NOTDONE: 'errNOTDONE',
        ERR_FIRMWARE: 'errFIRMWARE',
        ERR_VENDOR: 'errVENDOR',
        ERR_USBR: 'errUSBR',
        ERR_POR: 'errPOR',
        ERR_UNKNOWN: 'errUNKNOWN',
        ERR_STALLEDPKT: 'errSTALLEDPKT',
    }

    @staticmethod
    def string(status):
        return DfuStatus._names.get(status, 'unknown status 0x%.2x' % status)

class StatusReply(namedtuple('StatusReply', 'status poll_timeout state string_index')):
    """Decoded 6-byte DFU_GETSTATUS answer."""
    __slots__ = ()

    @classmethod
    def decode(cls, data):
        if len(data) != 6:
            raise ValueError("DFU status reply must be 6 bytes, got %d" % len(data))
        return cls(data[0],
                   data[1] | (data[2] << 8) | (data[3] << 16),
                   data[4],
                   data[5])

    def __str__(self):
        return "%s (%s), poll timeout %d ms" % (DfuState.string(self.state),
                                                DfuStatus.string(self.status),
                                                self.poll_timeout)
