from pydantic import BaseModel


class CertificateReadinessOut(BaseModel):
    event_id: str
    ready: bool


class CertificateEmissionOut(BaseModel):
    event_id: str
    event_name: str
    recipients: int
