"""Closed enumerations used across pricing and quotations."""
from enum import Enum


class Currency(str, Enum):
    COP = "COP"  # base currency
    USD = "USD"  # foreign currency


class ClientClassification(str, Enum):
    """Price classification attached to a client."""
    AUTORIZADO = "AUTORIZADO"
    MAYORISTA = "MAYORISTA"
    VIOMAR = "VIOMAR"
    COLANTA = "COLANTA"


# Classifications that carry a flat price field on the price record
FIXED_PRICE_CLASSIFICATIONS = (
    ClientClassification.MAYORISTA,
    ClientClassification.COLANTA,
    ClientClassification.VIOMAR,
)


class DocumentType(str, Enum):
    PERSONA = "P"  # natural person, IVA applies
    RAZON_SOCIAL = "R"  # legal entity, no IVA


class OrderType(str, Enum):
    NORMAL = "NORMAL"
    COMPLETACION = "COMPLETACION"
    REFERENTE = "REFERENTE"
    REPOSICION = "REPOSICION"
    BODEGA = "BODEGA"


class Negotiation(str, Enum):
    NINGUNA = ""
    CONVENIO = "CONVENIO"
    OBSEQUIO = "OBSEQUIO"
    MUESTRA = "MUESTRA"
    BODEGA = "BODEGA"
    COMPRAS = "COMPRAS"
    PRODUCCION = "PRODUCCION"
    MUESTRA_G = "MUESTRA_G"
    MUESTRA_C = "MUESTRA_C"


class OrderKind(str, Enum):
    NUEVO = "NUEVO"
    COMPLETACION = "COMPLETACION"
    REFERENTE = "REFERENTE"
