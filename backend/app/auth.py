"""
Identité de l'acteur authentifié.

L'authentification elle-même est assurée en amont (reverse proxy / SSO) :
l'API reçoit l'identifiant de l'utilisateur dans l'en-tête X-User-Id.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class Actor:
    """Utilisateur à l'origine d'une opération (création de campagne, vaccination…)."""
    id: uuid.UUID


def get_current_actor(x_user_id: Optional[str] = Header(default=None)) -> Actor:
    """Dépendance FastAPI : exige un X-User-Id valide, sinon 401."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentification requise.")
    try:
        return Actor(id=uuid.UUID(x_user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Identifiant utilisateur invalide.")
