"""This module contains the default values for all settings used by fetchstate.

For more information about these settings you can read the settings
documentation in README.rst

Setting names are kept in alphabetical order.
"""

LOG_DATEFORMAT = "%Y-%m-%d %H:%M:%S"
LOG_ENABLED = True
LOG_ENCODING = "utf-8"
LOG_FILE = None
LOG_FILE_APPEND = True
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
LOG_LEVEL = "DEBUG"
LOG_SHORT_NAMES = False

# Seconds a run may stay fetching before it is reported as stalled. 0 disables.
STALLED_DELAY = 0
