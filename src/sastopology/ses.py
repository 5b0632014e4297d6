"""SCSI Enclosure Services (SES) access for enclosures that do not report a unit serial number.

Reading a page (`SesPageReader`) is kept apart from decoding it (`decode_hex_dump`, `extract_serial`), so the decoding
can be exercised on captured `sg_ses` output."""
import os
import re
import binascii
from infi.exceptools import chain
from .errors import SerialResolutionError, SubprocessError, SubprocessTimeoutError
from logging import getLogger

logger = getLogger(__name__)

SES_PAGE_ELEMENT_DESCRIPTOR = 0x07
SG_SES_TIMEOUT_IN_SEC = 30

_WHITESPACE = re.compile(r"\s+")


class SesSerialLocation(object):
    """Where the enclosure serial number sits inside a model's SES page"""
    def __init__(self, offset, length, page=SES_PAGE_ELEMENT_DESCRIPTOR):
        super(SesSerialLocation, self).__init__()
        self.offset = offset
        self.length = length
        self.page = page

    def __eq__(self, other):
        return isinstance(other, SesSerialLocation) and \
            (self.offset, self.length, self.page) == (other.offset, other.length, other.page)

    def __ne__(self, other):
        return not self.__eq__(other)

    def __repr__(self):
        return "<{}(page=0x{:02x}, offset={}, length={})>".format(self.__class__.__name__,
                                                                 self.page, self.offset, self.length)


# these enclosures answer VPD page 0x80 with garbage, the serial is only in the element descriptor page
SES_SERIAL_LOCATIONS = {
    "SA4600": SesSerialLocation(offset=2068, length=16),
    "5U84": SesSerialLocation(offset=2327, length=10),
}


def trim_serial(buffer):
    """Strips spaces and NULs from both ends of a serial number buffer and returns it as a string"""
    return buffer.strip(b"\x00 ").decode("ascii", "replace")


def decode_hex_dump(raw):
    """Decodes the raw hex output of `sg_ses --raw` (bytes or str) into bytes"""
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", "replace")
    text = _WHITESPACE.sub("", raw)
    try:
        return binascii.unhexlify(text)
    except (binascii.Error, TypeError, ValueError) as error:
        raise chain(SerialResolutionError("failed to decode SES page hex dump: {}".format(error)))


def extract_serial(buffer, location):
    end = location.offset + location.length
    if len(buffer) < end:
        msg = "SES page 0x{:02x} is {} bytes long, serial number ends at byte {}"
        raise SerialResolutionError(msg.format(location.page, len(buffer), end))
    return trim_serial(buffer[location.offset:end])


class SesPageReader(object):
    """Reads SES diagnostic pages with sg_ses (sg3_utils)"""

    def __init__(self, timeout_in_seconds=SG_SES_TIMEOUT_IN_SEC, executable="sg_ses"):
        super(SesPageReader, self).__init__()
        self.timeout_in_seconds = timeout_in_seconds
        self.executable = executable

    def get_command(self, page, device_path):
        return [self.executable, "--page=0x{:02x}".format(page), "--raw", device_path]

    def read_page_hex(self, device_path, page):
        """Returns the stdout of sg_ses for the page, a hex dump as bytes"""
        from infi.execute import execute_async, CommandTimeout
        if device_path is None or not os.path.exists(device_path):
            raise SerialResolutionError("special file {!r} does not exist".format(device_path))
        cmd = self.get_command(page, device_path)
        logger.debug("executing {}".format(cmd))
        try:
            process = execute_async(cmd)
        except OSError as error:
            raise chain(SubprocessError("failed to execute {}: {}".format(cmd, error)))
        try:
            process.wait(self.timeout_in_seconds)
        except CommandTimeout:
            process.kill(9)
            msg = "{} did not finish within {} seconds"
            raise chain(SubprocessTimeoutError(msg.format(cmd, self.timeout_in_seconds)))
        logger.debug("execution of cmd {} (pid {}) returned {}".format(cmd, process.get_pid(),
                                                                    process.get_returncode()))
        if process.get_returncode() != 0:
            msg = "{} returned {}: {!r}"
            raise SubprocessError(msg.format(cmd, process.get_returncode(), process.get_stderr()))
        return process.get_stdout()

    def __repr__(self):
        return "<{}(executable={!r}, timeout={})>".format(self.__class__.__name__, self.executable,
                                                          self.timeout_in_seconds)
