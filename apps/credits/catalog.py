"""Static catalogue of credit packs offered for purchase."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CreditPack:
    id: str
    name: str
    credits: int
    price_clp: int


CREDIT_PACKS = (
    CreditPack(id='basic', name='Básico', credits=10, price_clp=10000),
    CreditPack(id='standard', name='Estándar', credits=30, price_clp=25000),
    CreditPack(id='pro', name='Pro', credits=100, price_clp=75000),
    CreditPack(id='turbo', name='Turbo', credits=250, price_clp=150000),
)


def get_credit_pack(pack_id: str) -> Optional[CreditPack]:
    for pack in CREDIT_PACKS:
        if pack.id == pack_id:
            return pack
    return None
