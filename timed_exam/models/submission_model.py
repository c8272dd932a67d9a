"""
models/submission_model.py

제출 요청/응답 모델.
요청은 서버 규격에 맞춰 camelCase 별칭으로 직렬화한다.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnswerEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(..., alias="questionId")
    selected_index: int = Field(..., alias="selectedIndex")


class SubmissionPayload(BaseModel):
    """제출 시점에 SessionProgress로부터 만들어지는 요청 본문 (저장하지 않음)."""

    model_config = ConfigDict(populate_by_name=True)

    submission_id: str = Field(..., alias="submissionId")
    answers: List[AnswerEntry] = Field(default_factory=list)

    def to_request(self) -> dict:
        return self.model_dump(by_alias=True)


class SubmissionResult(BaseModel):
    """
    채점 결과 (원격 서버가 계산).
    숫자가 아닌 점수는 0으로 취급한다. 서버가 추가로 내려주는 필드는 그대로 보존.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    score: Union[int, float] = 0
    total: Union[int, float] = 0
    status: str = ""
    started_at: Optional[Union[str, int, float]] = Field(None, alias="startedAt")
    submitted_at: Optional[Union[str, int, float]] = Field(None, alias="submittedAt")
    time_expired: bool = Field(False, alias="timeExpired")

    @field_validator('score', 'total', mode='before')
    @classmethod
    def zero_if_not_number(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return 0
        return v

    @field_validator('status', mode='before')
    @classmethod
    def empty_if_missing(cls, v):
        return "" if v is None else str(v)

    @field_validator('time_expired', mode='before')
    @classmethod
    def falsy_if_missing(cls, v):
        return bool(v)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
