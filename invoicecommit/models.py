
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class CensorshipRecordModel(BaseModel):
    token: str = Field(min_length=1)
    merkle: str = ""
    signature: str = Field(min_length=1)


class NewInvoiceReplyModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    censorshiprecord: CensorshipRecordModel


class VersionReplyModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: int
    route: str = ""
    pubkey: str = Field(min_length=1)
    testnet: bool = False


class ErrorReplyModel(BaseModel):
    errorcode: Optional[int] = None
    errorcontext: List[str] = Field(default_factory=list)
