"""Key-value app preferences ("prefs"), stored beside expenses."""
from sqlmodel import Field, SQLModel

DARK_MODE_KEY = "dark_mode"


class Preference(SQLModel, table=True):
    __tablename__ = "prefs"

    key: str = Field(primary_key=True)
    value: str
