# brewpos/errors.py
"""Eccezioni di dominio. Ognuna porta il suo `kind` e lo status HTTP,
così main.py le traduce senza conoscere i dettagli."""


class BrewposError(Exception):
    kind = "error"
    status_code = 500


class LedgerValidationError(BrewposError):
    """Input del client non valido: nessun accesso allo storage è stato fatto."""
    kind = "validation"
    status_code = 400


class OrderNotFound(BrewposError):
    kind = "not_found"
    status_code = 404

    def __init__(self, order_id: int):
        super().__init__(f"order {order_id} not found")
        self.order_id = order_id


class IllegalTransition(BrewposError):
    kind = "conflict"
    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(f"cannot move order from '{current}' to '{target}'")
        self.current = current
        self.target = target


class ProvisioningError(BrewposError):
    """Creazione/seed dello schema fallita; il flag 'ready' resta False."""
    kind = "provisioning"
    status_code = 503
