from __future__ import annotations

from pathlib import Path


class NcmError(Exception):
    pass


class InputFileError(NcmError):
    DEFAULT_MESSAGE = "Could not read input file '{input_path}': {reason}"

    def __init__(self, input_path: Path, reason: str):
        super().__init__(
            self.DEFAULT_MESSAGE.format(input_path=input_path, reason=reason)
        )
        self.input_path = input_path


class FormatError(NcmError):
    pass


class InvalidMagicError(FormatError):
    def __init__(self):
        super().__init__("Invalid NCM file format (header magic mismatch)")


class TruncatedContainerError(FormatError):
    DEFAULT_MESSAGE = (
        "NCM file is truncated: {section} needs {needed} byte(s) at offset "
        "{offset}, only {available} available"
    )

    def __init__(self, section: str, offset: int, needed: int, available: int):
        super().__init__(
            self.DEFAULT_MESSAGE.format(
                section=section,
                offset=offset,
                needed=needed,
                available=available,
            )
        )
        self.section = section


class CryptoError(NcmError):
    pass


class CryptoPaddingError(CryptoError):
    def __init__(self):
        super().__init__("Key decryption failed: invalid padding")


class CryptoBlockLengthError(CryptoError):
    def __init__(self, length: int):
        super().__init__(
            f"Key decryption failed: {length} byte(s) is not a whole number of "
            "AES blocks"
        )


class KeyTooShortError(CryptoError):
    def __init__(self):
        super().__init__("Decrypted key is empty after removing its prefix")


class TranscoderError(NcmError):
    pass


class TranscoderNotFoundError(TranscoderError):
    def __init__(self, executable: str):
        super().__init__(f"{executable} was not found in system PATH")
        self.executable = executable


class TranscoderExitError(TranscoderError):
    def __init__(self, executable: str, returncode: int, stderr: str):
        super().__init__(
            f'"{executable}" exited with code {returncode}: {stderr.strip()}'
        )
        self.returncode = returncode
        self.stderr = stderr
