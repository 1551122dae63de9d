"""
Router principal de la API v1.
Agrupa todos los sub-routers de la versión 1.
"""

from fastapi import APIRouter

from emr_ledger.api.v1.audit import router as audit_router
from emr_ledger.api.v1.consents import router as consents_router
from emr_ledger.api.v1.facilities import router as facilities_router
from emr_ledger.api.v1.history import router as history_router
from emr_ledger.api.v1.individuals import router as individuals_router
from emr_ledger.api.v1.practitioners import router as practitioners_router
from emr_ledger.api.v1.records import router as records_router
from emr_ledger.api.v1.reviews import router as reviews_router
from emr_ledger.api.v1.roles import router as roles_router
from emr_ledger.api.v1.system import router as system_router

api_v1_router = APIRouter()

api_v1_router.include_router(roles_router, prefix="/roles", tags=["Roles"])
api_v1_router.include_router(
    facilities_router, prefix="/facilities", tags=["Establecimientos"]
)
api_v1_router.include_router(
    practitioners_router, prefix="/practitioners", tags=["Profesionales"]
)
api_v1_router.include_router(
    individuals_router, prefix="/individuals", tags=["Pacientes"]
)
api_v1_router.include_router(
    records_router, prefix="/records", tags=["Registros clínicos"]
)
api_v1_router.include_router(
    consents_router, prefix="/consents", tags=["Consentimientos"]
)
api_v1_router.include_router(reviews_router, prefix="/reviews", tags=["Revisiones"])
api_v1_router.include_router(history_router, prefix="/history", tags=["Historia"])
api_v1_router.include_router(system_router, prefix="/system", tags=["Sistema"])
api_v1_router.include_router(audit_router, prefix="/audit", tags=["Auditoría"])
