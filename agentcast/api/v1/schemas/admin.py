from pydantic import BaseModel


class ModerationOut(BaseModel):
    name: str
    banned: bool


class EndStreamOut(BaseModel):
    name: str
    active: bool = False
