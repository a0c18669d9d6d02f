from pydantic import BaseModel


class EnvConfig(BaseModel):
    """One setting a client reads at construction.

    Attributes:
        env_key (str): Key without the "<TYPE>_<ENGINE>_" prefix, e.g. "DATABASE_URL".
        val_type (str): "string", "number" or "bool".
        default: Value used when the variable is unset; None marks the setting as required.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
