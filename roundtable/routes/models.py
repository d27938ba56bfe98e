"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, Field, model_validator

from roundtable.models import DiscussionType, ModelBinding

# One guest per named role: pioneer, rationalist, realist, converger.
MAX_OPINION_ROSTER = 4


class CreateCharacter(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    tag: str = ""
    binding: ModelBinding | None = None


class CreateDiscussion(BaseModel):
    name: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    type: DiscussionType = "debate"
    participant_ids: list[str] = Field(min_length=1)

    @model_validator(mode="after")
    def _opinion_roster_size(self) -> "CreateDiscussion":
        if self.type == "opinion" and len(self.participant_ids) > MAX_OPINION_ROSTER:
            raise ValueError(
                f"Opinion discussions take at most {MAX_OPINION_ROSTER} participants"
            )
        return self


class SendMessage(BaseModel):
    text: str = Field(min_length=1)


class MentionBody(BaseModel):
    name: str


class CheckConnectionBody(BaseModel):
    binding: ModelBinding
