"""Client domain service."""

from typing import Optional
from ledgerline.database.base import Database
from ledgerline.domain.entities import Client as ClientEntity, FiscalPeriodConfig
from ledgerline.domain.errors import ConflictError, NotFoundError, client_not_found
from ledgerline.domain.fiscal import validate_fiscal_config


class ClientService:
    """Service for managing clients and their fiscal configuration."""

    def __init__(self, db: Database):
        """Initialize client service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_client(
        self, name: str, fiscal_year_end_month: int = 12, fiscal_year_end_day: int = 31
    ) -> int:
        """Create a new client.

        Args:
            name: Client name
            fiscal_year_end_month: Month the fiscal year ends (1-12)
            fiscal_year_end_day: Day the fiscal year ends

        Returns:
            Client ID

        Raises:
            ConflictError: If a client with the same name exists
            ValidationError: If the fiscal year end is invalid
        """
        validate_fiscal_config(
            FiscalPeriodConfig(fiscal_year_end_month, fiscal_year_end_day)
        )
        if self.db.get_client_by_name(name) is not None:
            raise ConflictError(f"Client with name '{name}' already exists")
        return self.db.create_client(
            name=name,
            fiscal_year_end_month=fiscal_year_end_month,
            fiscal_year_end_day=fiscal_year_end_day,
        )

    def get_client(self, client_id: int) -> Optional[ClientEntity]:
        """Get client by ID."""
        return self.db.get_client(client_id)

    def require_client(self, client_id: int) -> ClientEntity:
        """Get client by ID or raise NotFoundError."""
        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))
        return client

    def list_clients(self) -> list[ClientEntity]:
        """List all clients."""
        return self.db.list_clients()

    def resolve_client(self, client: str | int) -> ClientEntity:
        """Resolve a client name or ID.

        Raises:
            NotFoundError: If no client matches
        """
        if isinstance(client, int):
            return self.require_client(client)

        try:
            client_id = int(client)
        except (ValueError, TypeError):
            pass
        else:
            found = self.db.get_client(client_id)
            if found is not None:
                return found

        found = self.db.get_client_by_name(client)
        if found is None:
            raise NotFoundError(client_not_found(client))
        return found

    def set_fiscal_year_end(self, client_id: int, month: int, day: int) -> None:
        """Change a client's fiscal year end.

        Raises:
            NotFoundError: If client not found
            ValidationError: If month/day is invalid
        """
        self.require_client(client_id)
        validate_fiscal_config(FiscalPeriodConfig(month, day))
        self.db.update_client_fiscal_year_end(client_id, month, day)

    def get_fiscal_config(self, client_id: int) -> FiscalPeriodConfig:
        """Return the fiscal configuration of a client."""
        return self.require_client(client_id).fiscal_config
