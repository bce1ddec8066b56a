"""
Política de acceso a rutas del frontend según rol y estado de onboarding.

El frontend consulta esta política para decidir si muestra una ruta o
redirige. Devuelve None cuando el acceso está permitido o la ruta destino.
"""
import re
from typing import Optional

UNPROTECTED_ROUTES = ("/login", "/signup", "/accept-invitation")
ONBOARDING_PREFIX = "/setup"

INVENTORY_EDIT_PATTERN = re.compile(r"^/inventory/.+/edit$")


def check_route_access(
    path: str,
    authenticated: bool,
    role: Optional[str] = None,
    user_onboarded: bool = True,
    organization_onboarded: bool = True,
) -> Optional[str]:
    is_unprotected = any(path.startswith(route) for route in UNPROTECTED_ROUTES)
    is_onboarding = path.startswith(ONBOARDING_PREFIX)

    if not authenticated:
        if is_unprotected or is_onboarding:
            return None
        return "/login"

    if is_unprotected:
        return "/"

    if not user_onboarded and not is_onboarding:
        return "/setup/welcome"

    if user_onboarded and role != "staff" and not organization_onboarded and not is_onboarding:
        return "/setup/details"

    if (organization_onboarded or role == "staff") and user_onboarded and is_onboarding:
        return "/"

    if path.startswith("/users") and role != "owner":
        return "/"
    if path.startswith("/reports") and role == "staff":
        return "/"
    if path.startswith("/suppliers") and role == "staff":
        return "/"
    if INVENTORY_EDIT_PATTERN.match(path) and role == "staff":
        return "/inventory"
    if path.startswith("/expenses") and role == "staff" and not path.endswith("/new"):
        return "/expenses/new"

    return None
