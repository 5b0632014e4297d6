from infi.exceptools import InfiException

# pylint: disable=E1002
# InfiException inherits from Exception


class SASTopologyError(InfiException):
    """Base Exception class for this module """
    pass


class ConfigurationError(SASTopologyError):
    pass


class MalformedPathError(SASTopologyError):
    """The sysfs path of a device is too short to locate its HBA and port"""
    def __init__(self, path, minimum):
        super(MalformedPathError, self).__init__(path, minimum)

    def __str__(self):
        return "unexpected sysfs path {!r}: must have at least {} elements".format(self.args[0], self.args[1])


class AttributeReadError(SASTopologyError):
    """A sysfs attribute or entry could not be read"""
    pass


class AttributeNotFoundError(AttributeReadError):
    """A sysfs attribute or entry does not exist"""
    pass


class UnknownDeviceTypeError(SASTopologyError):
    def __init__(self, device_id, device_type):
        super(UnknownDeviceTypeError, self).__init__(device_id, device_type)

    def __str__(self):
        return "unknown device type {} for device {}".format(self.args[1], self.args[0])


class SerialResolutionError(SASTopologyError):
    pass


class SubprocessError(SerialResolutionError):
    pass


class SubprocessTimeoutError(SubprocessError):
    pass
