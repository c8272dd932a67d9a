from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Question(BaseModel):
    """
    객관식 문제 모델 (로드 후 불변)
    Pydantic v2 적용
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        ...,
        validation_alias=AliasChoices("id", "_id"),
        description="문제 식별자 (서버가 발급한 불투명 문자열, `_id`도 허용)"
    )
    text: str = Field(
        ...,
        description="발문/문제 내용"
    )
    options: List[str] = Field(
        ...,
        min_length=1,
        description="보기 리스트 (순서 유지)"
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """숫자 ID도 문자열로 통일한다."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ExamSession(BaseModel):
    """
    시간 제한 시험 1회분의 불변 정의.
    세션 부트스트랩이 생성하며 이후에는 읽기 전용.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    submission_id: str = Field(
        ...,
        alias="submissionId",
        min_length=1,
        description="응시(제출) 식별자"
    )
    duration_seconds: int = Field(
        ...,
        alias="durationSeconds",
        ge=0,
        description="제한 시간 (초)"
    )
    questions: List[Question] = Field(
        ...,
        min_length=1,
        description="문제 목록 (순서 고정)"
    )

    @field_validator('submission_id', mode='before')
    @classmethod
    def coerce_submission_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def find_question(self, question_id: str) -> Question | None:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None
