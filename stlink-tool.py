#!/usr/bin/env python3
import stlinkdfu
import argparse
import logging
import sys

DEFAULT_ADDRESS = 0x08004000
DEFAULT_ADDRESS_V3 = 0x08020000
DEFAULT_CHUNK_SIZE = 1024

def open_device(args):
    usbdev = stlinkdfu.find_stlink(args.vid)
    return stlinkdfu.StlinkDevice(stlinkdfu.UsbTransport(usbdev, timeout=args.timeout))

def print_infos(dev):
    mode = dev.current_mode()
    print("Current mode: %s" % stlinkdfu.mode_string(mode))
    if mode not in (stlinkdfu.MODE_DFU, stlinkdfu.MODE_BOOTLOADER):
        print("STLink is not in the bootloader, unplug and plug it again", file=sys.stderr)

    infos = dev.read_infos()
    print("Firmware version: %s" % infos.version_string())
    print("Loader version: %d" % infos.loader_version)
    if infos.product_id:
        print("Product ID: 0x%.3x" % infos.product_id)
    print("STLink ID: %s" % infos.device_id.hex().upper())
    print("Firmware encryption key: %s" % infos.firmware_key.hex().upper())

    status = dev.get_status()
    print("DFU state: %s" % stlinkdfu.DfuState.string(status.state))
    print("DFU status: %s" % stlinkdfu.DfuStatus.string(status.status))
    return infos

def load_image(filename):
    with open(filename, 'rb') as f:
        data = f.read()
    if not data:
        raise ValueError("File %r could not be read" % filename)
    return data

def progress(flashed, total):
    print(".", end="", flush=True)

def flash(dev, infos, args):
    data = load_image(args.firmware)
    print("Loaded firmware: %s, size: %d bytes" % (args.firmware, len(data)))

    address = args.address
    if address is None:
        address = DEFAULT_ADDRESS_V3 if infos.stlink_version == 3 else DEFAULT_ADDRESS

    print("Flashing at 0x%.8x. Please wait this might be long ..." % address)
    dev.flash(data, address, args.chunk_size, progress)
    print()
    print("Done !")

def run(args):
    dev = open_device(args)
    try:
        infos = print_infos(dev)
        if args.probe:
            return

        flash(dev, infos, args)
        if not args.no_exit:
            dev.exit_dfu()
    finally:
        dev.transport.close()

def build_parser():
    parser = argparse.ArgumentParser(description="STLink firmware flashing util")

    parser.add_argument('firmware', nargs='?', metavar='FILE', help='Firmware binary to flash')
    parser.add_argument('--probe', '-p', action='store_true', help='Only print probe informations')

    flashopts = parser.add_argument_group('Flashing options')
    flashopts.add_argument('--address', action='store', type=lambda x: int(x, 0), default=None,
                           help='Flash address, defaults to 0x%.8x (0x%.8x on STLink V3)'
                           % (DEFAULT_ADDRESS, DEFAULT_ADDRESS_V3))
    flashopts.add_argument('--chunk-size', action='store', type=lambda x: int(x, 0), default=DEFAULT_CHUNK_SIZE,
                           help='Bytes per download block, defaults to %d' % DEFAULT_CHUNK_SIZE)
    flashopts.add_argument('--no-exit', action='store_true', help='Stay in the bootloader after flashing')

    devinfo = parser.add_argument_group('Device information')
    devinfo.add_argument('--vid', action='store', type=lambda x: int(x, 0), default=stlinkdfu.STLINK_VID,
                         help='Device\'s USB vendor id, defaults to 0x%.4x' % stlinkdfu.STLINK_VID)
    devinfo.add_argument('--timeout', action='store', type=int, default=stlinkdfu.USB_TIMEOUT,
                         help='USB transfer timeout in ms, defaults to %d' % stlinkdfu.USB_TIMEOUT)

    others = parser.add_argument_group('Other Options')
    others.add_argument('--verbose', '-v', action='store_true', help='Log USB traffic')
    return parser

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.probe and args.firmware is None:
        parser.error("a firmware file is required unless --probe is given")

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(name)s: %(message)s')

    try:
        run(args)
    except Exception as e:
        print(e, file=sys.stderr)
        sys.exit(-1)

if __name__ == '__main__':
    main()
