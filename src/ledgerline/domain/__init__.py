"""Domain layer for ledgerline application."""

# Services import the database layer, which imports entities from this
# package, so they are exported lazily.
_SERVICES = {
    "AccountService": "ledgerline.domain.account",
    "BalanceService": "ledgerline.domain.balances",
    "ClientService": "ledgerline.domain.client",
    "GLImportService": "ledgerline.domain.gl_import",
    "GLNormalizer": "ledgerline.domain.gl_normalizer",
    "JournalService": "ledgerline.domain.journal",
    "ReportService": "ledgerline.domain.reports",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
