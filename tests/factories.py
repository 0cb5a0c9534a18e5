from timed_assessment.models.test_model import Answer, Question, TestDefinition


def make_test(
    test_id: str = "t1",
    time_limit_seconds: int = 60,
    pass_score_percent: int = 70,
    points: tuple[int, ...] = (5, 10),
    **kwargs,
) -> TestDefinition:
    questions = [
        Question(
            id=f"q{i + 1}",
            text=f"Question {i + 1}",
            points=p,
            answers=[
                Answer(id="right", text="right", is_correct=True),
                Answer(id="wrong", text="wrong", is_correct=False),
            ],
        )
        for i, p in enumerate(points)
    ]
    return TestDefinition(
        id=test_id,
        title=f"Test {test_id}",
        time_limit_seconds=time_limit_seconds,
        pass_score_percent=pass_score_percent,
        questions=questions,
        **kwargs,
    )


def advance(clock, ticker, seconds: int) -> None:
    """시계를 1초씩 전진시키며 매번 tick 을 전달한다."""
    for _ in range(seconds):
        clock.advance(1)
        ticker.fire()
