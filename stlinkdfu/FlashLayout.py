from .StlinkErrors import GeometryError

FLASH_BASE = 0x08000000
SECTOR_COUNT = 32

def sector_size(product_id):
    return 0x8000 if product_id == 0x449 else 0x4000

def address_to_sector(product_id, address):
    """Map a flash address to the index of the erase sector holding it.

    Sectors 0-3 are one base size wide, sector 4 is four times that and
    every following sector is eight times the base size.
    """
    size = sector_size(product_id)
    if address < FLASH_BASE or address >= FLASH_BASE + SECTOR_COUNT * size:
        raise GeometryError("Invalid sector address 0x%.8x" % address)

    offset = address - FLASH_BASE
    if offset < 4 * size:
        return offset // size
    elif offset < 8 * size:
        return 4
    else:
        return offset // (8 * size) + 4

def sector_range(product_id, address, size):
    if size < 1:
        raise GeometryError("Cannot erase an empty region at 0x%.8x" % address)

    start = address_to_sector(product_id, address)
    end = address_to_sector(product_id, address + size - 1)
    if end < start:
        raise GeometryError("Invalid sector range %d-%d" % (start, end))
    return range(start, end + 1)
