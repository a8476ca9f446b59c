from .exceptions import KeyTooShortError

TABLE_SIZE = 256


def schedule_key(key: bytes) -> bytearray:
    """Run the RC4 key schedule over the identity permutation."""
    if not key:
        raise KeyTooShortError()

    box = bytearray(range(TABLE_SIZE))
    j = 0
    for i in range(TABLE_SIZE):
        j = (j + box[i] + key[i % len(key)]) & 0xFF
        box[i], box[j] = box[j], box[i]
    return box


def remap_box(box: bytes) -> bytes:
    return bytes(
        box[(box[(i + box[i]) & 0xFF] + box[i]) & 0xFF] for i in range(TABLE_SIZE)
    )


def build_keystream_table(key: bytes) -> bytes:
    """
    Derive the 256-byte lookup table used to decrypt the audio payload.

    The first pass is the RC4 key schedule. The second pass remaps every
    entry through the scheduled permutation, so the result is a plain lookup
    table and no longer a permutation.
    """
    return remap_box(schedule_key(key))


def get_keystream_block(table: bytes) -> bytes:
    # mask byte for every payload position modulo 256
    return bytes(table[table[(i + 1) & 0xFF]] for i in range(TABLE_SIZE))


def decrypt_audio(table: bytes, data: bytes, offset: int = 0) -> bytes:
    """
    XOR data with the keystream for positions offset .. offset + len(data).

    The keystream depends only on the position, so any slice of the payload
    can be decrypted on its own by passing its offset.
    """
    if not data:
        return b""

    block = get_keystream_block(table)
    shift = offset % TABLE_SIZE
    block = block[shift:] + block[:shift]
    keystream = (block * (len(data) // TABLE_SIZE + 1))[: len(data)]

    return (
        int.from_bytes(data, "big") ^ int.from_bytes(keystream, "big")
    ).to_bytes(len(data), "big")


encrypt_audio = decrypt_audio
