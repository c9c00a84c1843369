# nfc_wallet/utils/logger.py

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def setup_logger(level: str = "INFO"):
    """
    Configure the root logger once for the whole app.
    Modules log through logging.getLogger(__name__).
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())

    if _configured:
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # web3 logs every RPC request at DEBUG
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    _configured = True
    return root
