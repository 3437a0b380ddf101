"""Base Pydantic model for socialite-dingtalk.

All configuration and record models in this package inherit from
`SocialiteBaseModel` so they share one validation policy:

- Unknown fields are rejected
- Instances are immutable

Example:
    >>> from socialite_dingtalk.models import SocialiteBaseModel
    >>>
    >>> class Credentials(SocialiteBaseModel):
    ...     client_id: str
    >>>
    >>> Credentials(client_id="ding123").model_dump()
    {'client_id': 'ding123'}
"""

from pydantic import BaseModel, ConfigDict


class SocialiteBaseModel(BaseModel):
    """Base model for all socialite-dingtalk Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable

    Models that are filled in step by step during a login flow (e.g. `User`)
    override this configuration.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
