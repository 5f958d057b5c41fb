from Crypto.Cipher import AES

BLOCK_SIZE = 16

# The probe bootloader runs AES on big-endian 32-bit words
def swap_words(data):
    out = bytearray(len(data))
    for i in range(0, len(data), 4):
        out[i:i + 4] = data[i:i + 4][::-1]
    return out

def encrypt(key, data):
    """Obfuscate data the way the STLink bootloader expects.

    AES-128 in ECB mode over every 16-byte block, key and data taken as
    big-endian words. Returns a new bytes object of the same length.
    """
    if len(key) != BLOCK_SIZE:
        raise ValueError("Cipher key must be %d bytes, got %d" % (BLOCK_SIZE, len(key)))
    if len(data) % BLOCK_SIZE:
        raise ValueError("Cipher input must be a multiple of %d bytes, got %d" % (BLOCK_SIZE, len(data)))

    aes = AES.new(bytes(swap_words(key)), AES.MODE_ECB)
    return bytes(swap_words(aes.encrypt(bytes(swap_words(data)))))
