from pydantic import BaseModel, ConfigDict, Field, StrictStr

# Wire names follow the browser client (camelCase); snake_case is accepted too.


class InitAuthRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: StrictStr = Field(alias="walletAddress", min_length=1)


class VerifyAuthRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: StrictStr = Field(alias="walletAddress", min_length=1)
    signature: StrictStr = Field(min_length=1)
