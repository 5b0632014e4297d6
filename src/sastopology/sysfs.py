import os
import errno
from infi.exceptools import chain
from .errors import AttributeReadError, AttributeNotFoundError

SYSFS_CLASS_SCSI_DEVICE_PATH = "/sys/class/scsi_device"



def _translate_os_error(error, path):
    if error.errno in (errno.ENOENT, errno.ENOTDIR):
        return AttributeNotFoundError("{} does not exist".format(path))
    return AttributeReadError("failed to read {}: {}".format(path, error))


class AttributeSource(object):
    """Read-only access to a hierarchical device metadata tree.

    Every method raises `sastopology.errors.AttributeNotFoundError` when the entry is absent and
    `sastopology.errors.AttributeReadError` when it exists but cannot be read."""

    def get_scsi_device_names(self):
        """Returns the names of all the SCSI devices (H:C:T:L strings)"""
        return self.list_children(SYSFS_CLASS_SCSI_DEVICE_PATH)

    def get_scsi_device_path(self, name):
        """Returns the real path of the device node of the SCSI device"""
        return self.resolve(os.path.join(SYSFS_CLASS_SCSI_DEVICE_PATH, name, "device"))

    #############################
    # Platform Specific Methods #
    #############################

    def list_children(self, path):  # pragma: no cover
        """Returns a sorted list of the names of the entries under path"""
        raise NotImplementedError()

    def read_attribute(self, path, name):  # pragma: no cover
        """Returns the stripped string value of the attribute"""
        raise NotImplementedError()

    def read_int_attribute(self, path, name):  # pragma: no cover
        raise NotImplementedError()

    def read_binary_attribute(self, path, name):  # pragma: no cover
        """Returns the raw bytes of the attribute, e.g. vpd_pg80"""
        raise NotImplementedError()

    def resolve(self, path):  # pragma: no cover
        """Returns the path with all symbolic links resolved"""
        raise NotImplementedError()


class Sysfs(AttributeSource):
    def list_children(self, path):
        try:
            return sorted(os.listdir(path))
        except (IOError, OSError) as error:
            raise chain(_translate_os_error(error, path))

    def _read(self, path, name, mode):
        attribute_path = os.path.join(path, name)
        try:
            with open(attribute_path, mode) as fd:
                return fd.read()
        except (IOError, OSError) as error:
            raise chain(_translate_os_error(error, attribute_path))

    def read_attribute(self, path, name):
        # vendor/model/rev are fixed-width INQUIRY fields and may hold any byte
        return self._read(path, name, "rb").decode("utf-8", "replace").strip()

    def read_int_attribute(self, path, name):
        value = self.read_attribute(path, name)
        try:
            return int(value)
        except ValueError:
            msg = "{} of {} is not an integer: {!r}"
            raise chain(AttributeReadError(msg.format(name, path, value)))

    def read_binary_attribute(self, path, name):
        return self._read(path, name, "rb")

    def resolve(self, path):
        if not os.path.exists(path):
            raise AttributeNotFoundError("{} does not exist".format(path))
        return os.path.realpath(path)

    def __repr__(self):
        return "<{}>".format(self.__class__.__name__)
