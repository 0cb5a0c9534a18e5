"""
services/grading_service.py

시험 채점 및 결과 분석 비즈니스 로직.
순수 Python 함수로 구성 — 전역 상태 변경, I/O 없음.
같은 (시험 정의, 답안지) 쌍은 항상 같은 결과를 낸다.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from timed_assessment.models.result_model import GradeOutcome, QuestionReview
from timed_assessment.models.test_model import Question, TestDefinition


def _is_correct(question: Question, answer_id: str | None) -> bool:
    if answer_id is None:
        return False
    answer = question.find_answer(answer_id)
    return answer is not None and answer.is_correct


def calculate_percentage(score: int, max_score: int) -> int:
    """
    score / max_score 를 백분율로 환산하여 정수로 반올림한다 (0.5 는 올림).

    max_score 가 0 이면 0 을 반환.
    """
    if max_score <= 0:
        return 0
    ratio = Decimal(score) * 100 / Decimal(max_score)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_passed(percentage: int, pass_score_percent: int) -> bool:
    """
    합격 여부를 반환한다.

    Returns:
        percentage >= pass_score_percent 이면 True, 아니면 False.
    """
    return percentage >= pass_score_percent


def grade(test: TestDefinition, answers: Dict[str, str]) -> GradeOutcome:
    """
    사용자 답안을 채점한다.

    정답 판정 기준: 선택한 보기의 is_correct 가 True 이면 해당 문제 배점 전체 획득.
    응답하지 않은 문제, 오답, 존재하지 않는 보기는 0점.

    Args:
        test:    채점 대상 시험 정의.
        answers: 사용자 답안지. {question.id: answer.id}

    Returns:
        GradeOutcome(score, max_score, percentage, is_passed)
    """
    score = 0
    max_score = 0
    for q in test.questions:
        max_score += q.points
        if _is_correct(q, answers.get(q.id)):
            score += q.points

    percentage = calculate_percentage(score, max_score)
    return GradeOutcome(
        score=score,
        max_score=max_score,
        percentage=percentage,
        is_passed=is_passed(percentage, test.pass_score_percent),
    )


def build_review(
    test: TestDefinition,
    answers: Dict[str, str],
) -> List[QuestionReview]:
    """
    문제별 채점 내역을 만든다. 정답 정보가 포함되므로 종료된 세션에만 사용한다.
    """
    review: List[QuestionReview] = []
    for idx, q in enumerate(test.questions):
        selected = answers.get(q.id)
        if selected is None:
            verdict = "unanswered"
        elif _is_correct(q, selected):
            verdict = "correct"
        else:
            verdict = "incorrect"
        review.append(
            QuestionReview(
                question_id=q.id,
                question_index=idx,
                points=q.points,
                earned_points=q.points if verdict == "correct" else 0,
                selected_answer_id=selected,
                correct_answer_ids=[a.id for a in q.answers if a.is_correct],
                verdict=verdict,
            )
        )
    return review


def performance_level(percentage: int) -> str:
    """결과 화면의 성취 등급."""
    if percentage >= 90:
        return "excellent"
    if percentage >= 80:
        return "good"
    if percentage >= 70:
        return "satisfactory"
    return "needs_improvement"
