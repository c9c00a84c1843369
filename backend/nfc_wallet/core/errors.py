# nfc_wallet/core/errors.py


class WalletError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WalletError):
    """Input rejected before any chain call"""
    status_code = 400


class PermissionDeniedError(WalletError):
    """Caller is not allowed to perform the operation"""
    status_code = 403


class NotFoundError(WalletError):
    """Unknown NFC uid, address or domain"""
    status_code = 404


class ConflictError(WalletError):
    """Domain or name already taken, or card in a state that forbids the call"""
    status_code = 409


class ChainError(WalletError):
    """RPC failure, contract revert or contract not configured"""
    status_code = 502
