"""UTF-8 coding of single code points and lenient base64 decoding."""

UTF_INVALID = 0xFFFD
UTF_SIZ = 4

_UTFBYTE = (0x80, 0x00, 0xC0, 0xE0, 0xF0)
_UTFMASK = (0xC0, 0x80, 0xE0, 0xF0, 0xF8)
_UTFMIN = (0, 0, 0x80, 0x800, 0x10000)
_UTFMAX = (0x10FFFF, 0x7F, 0x7FF, 0xFFFF, 0x10FFFF)


def _decode_byte(byte):
    """Return the payload bits of a byte and its kind (0 = continuation)."""
    for kind, (mask, lead) in enumerate(zip(_UTFMASK, _UTFBYTE)):
        if byte & mask == lead:
            return byte & ~mask & 0xFF, kind
    return 0, len(_UTFMASK)


def utf8_validate(rune, size):
    """Replace a rune invalid for a sequence of ``size`` bytes.

    Returns the (possibly replaced) rune and the number of bytes needed
    to encode it.
    """
    if not 0 <= size <= UTF_SIZ:
        raise ValueError(f"invalid UTF-8 sequence size: {size}")
    if not _UTFMIN[size] <= rune <= _UTFMAX[size] or 0xD800 <= rune <= 0xDFFF:
        rune = UTF_INVALID
    length = next(n for n in range(1, UTF_SIZ + 1) if rune <= _UTFMAX[n])
    return rune, length


def utf8_decode(data):
    """Decode the first code point of ``data``.

    Returns ``(rune, consumed)``. ``consumed`` is 0 when the sequence is
    incomplete and more bytes are needed.
    """
    if not data:
        return UTF_INVALID, 0
    value, size = _decode_byte(data[0])
    if not 1 <= size <= UTF_SIZ:
        return UTF_INVALID, 1
    consumed = 1
    for byte in data[1:size]:
        bits, kind = _decode_byte(byte)
        value = (value << 6) | bits
        if kind != 0:
            return UTF_INVALID, consumed
        consumed += 1
    if consumed < size:
        return UTF_INVALID, 0
    rune, _ = utf8_validate(value, size)
    return rune, size


def utf8_encode(rune):
    """Encode a code point; invalid ones become U+FFFD."""
    rune, length = utf8_validate(rune, 0)
    out = bytearray(length)
    for pos in range(length - 1, 0, -1):
        out[pos] = _UTFBYTE[0] | (rune & ~_UTFMASK[0] & 0xFF)
        rune >>= 6
    out[0] = (_UTFBYTE[length] | (rune & ~_UTFMASK[length])) & 0xFF
    return bytes(out)


_B64_ALPHABET = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_B64_VALUES = {char: value for value, char in enumerate(_B64_ALPHABET)}
_B64_VALUES[ord("=")] = -1
_PAD = ord("=")


def base64_decode(text):
    """Decode base64 leniently.

    Non-printable characters are skipped, missing padding is assumed,
    unknown characters count as zero and decoding stops at padding.
    """
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    chars = [byte for byte in data if 0x20 <= byte <= 0x7E]
    chars.extend([_PAD] * (-len(chars) % 4))
    values = [_B64_VALUES.get(char, 0) for char in chars]

    out = bytearray()
    for a, b, c, d in zip(*[iter(values)] * 4):
        if a == -1 or b == -1:
            break
        out.append(((a << 2) | ((b & 0x30) >> 4)) & 0xFF)
        if c == -1:
            break
        out.append((((b & 0x0F) << 4) | ((c & 0x3C) >> 2)) & 0xFF)
        if d == -1:
            break
        out.append((((c & 0x03) << 6) | d) & 0xFF)
    return bytes(out)