import os
from collections import namedtuple
from infi.exceptools import chain
from .enclosure import DEFAULT_PATH_PREFIX_MATCH_DEPTH
from .errors import ConfigurationError
from .ses import SES_SERIAL_LOCATIONS, SG_SES_TIMEOUT_IN_SEC, SesSerialLocation
from logging import getLogger

logger = getLogger(__name__)

DEFAULT_EXPECTED_PATH_COUNT = 2

_Conf = namedtuple("Conf", ["expected_path_count", "path_prefix_match_depth", "hba_labels", "ses_serial_models",
                            "ses_timeout"])


class Conf(_Conf):
    """Immutable configuration of a discovery run

    - **expected_path_count**: number of paths every unit should have, used for reporting mismatches
    - **path_prefix_match_depth**: number of sysfs path elements a device must share with an enclosure to be in it
    - **hba_labels**: PCI bus id -> label of the physical slot of the HBA
    - **ses_serial_models**: enclosure model -> `sastopology.ses.SesSerialLocation`
    - **ses_timeout**: seconds to wait for sg_ses
    """
    __slots__ = ()

    def __new__(cls, expected_path_count=DEFAULT_EXPECTED_PATH_COUNT,
                path_prefix_match_depth=DEFAULT_PATH_PREFIX_MATCH_DEPTH, hba_labels=None, ses_serial_models=None,
                ses_timeout=SG_SES_TIMEOUT_IN_SEC):
        return super(Conf, cls).__new__(cls, expected_path_count, path_prefix_match_depth, dict(hba_labels or {}),
                                        dict(SES_SERIAL_LOCATIONS if ses_serial_models is None else ses_serial_models),
                                        ses_timeout)


def _get_ses_serial_models(data):
    models = dict(SES_SERIAL_LOCATIONS)
    for model, location in (data or {}).items():
        try:
            models[str(model)] = SesSerialLocation(int(location["offset"]), int(location["length"]),
                                                   int(location.get("page", 0x07)))
        except (KeyError, TypeError, ValueError, AttributeError):
            raise chain(ConfigurationError("invalid SES serial location for model {!r}: {!r}".format(model, location)))
    return models


def conf_from_dict(data):
    """Creates a `Conf` from the parsed configuration file:

        expected_path_count: 2
        path_prefix_match_depth: 8
        hba_labels:
          "0000:11:00.0": C3
          "0000:8b:00.0": C5
        ses_serial_models:
          SA4600: {offset: 2068, length: 16}
        ses_timeout: 30

    `HBALabels` is accepted instead of `hba_labels`."""
    if not isinstance(data, dict):
        raise ConfigurationError("configuration must be a mapping, got {!r}".format(data))
    hba_labels = data.get("hba_labels", data.get("HBALabels")) or {}
    try:
        return Conf(expected_path_count=int(data.get("expected_path_count", DEFAULT_EXPECTED_PATH_COUNT)),
                    path_prefix_match_depth=int(data.get("path_prefix_match_depth",
                                                         DEFAULT_PATH_PREFIX_MATCH_DEPTH)),
                    hba_labels=dict((str(key), str(value or '')) for key, value in hba_labels.items()),
                    ses_serial_models=_get_ses_serial_models(data.get("ses_serial_models")),
                    ses_timeout=int(data.get("ses_timeout", SG_SES_TIMEOUT_IN_SEC)))
    except (TypeError, ValueError, AttributeError) as error:
        raise chain(ConfigurationError("invalid configuration: {}".format(error)))


def load_conf(path):
    """Loads a `Conf` from a YAML file; a missing file gives the default configuration"""
    import yaml
    path = os.path.expanduser(path)
    if not os.path.exists(path):
        logger.warning("configuration file {} not found, using default settings".format(path))
        return Conf()
    logger.info("loading configuration from {}".format(path))
    try:
        with open(path, "r") as fd:
            data = yaml.safe_load(fd)
    except yaml.YAMLError as error:
        raise chain(ConfigurationError("error parsing {}: {}".format(path, error)))
    except (IOError, OSError) as error:
        raise chain(ConfigurationError("error reading {}: {}".format(path, error)))
    if data is None:
        logger.warning("configuration file {} is empty, using default settings".format(path))
        return Conf()
    return conf_from_dict(data)
