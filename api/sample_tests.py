"""
api/sample_tests.py — 카탈로그 파일이 없을 때 사용하는 샘플 시험
"""

from timed_assessment.models.test_model import Answer, Question, TestDefinition

SAMPLE_TESTS = [
    TestDefinition(
        id="go-basics",
        title="Go 기초",
        description="변수, 타입, 제어문에 대한 기본 문제",
        time_limit_seconds=600,
        pass_score_percent=70,
        points=50,
        questions=[
            Question(
                id="q1",
                text="Go에서 변수를 짧게 선언하는 연산자는?",
                points=5,
                answers=[
                    Answer(id="a1", text=":=", is_correct=True),
                    Answer(id="a2", text="=", is_correct=False),
                    Answer(id="a3", text="<-", is_correct=False),
                ],
            ),
            Question(
                id="q2",
                text="빈 인터페이스 interface{} 가 담을 수 있는 값은?",
                points=10,
                answers=[
                    Answer(id="a1", text="모든 타입의 값", is_correct=True),
                    Answer(id="a2", text="포인터만", is_correct=False),
                    Answer(id="a3", text="기본 타입만", is_correct=False),
                ],
            ),
            Question(
                id="q3",
                text="버퍼 채널의 송신자가 블록되는 시점은?",
                points=10,
                answers=[
                    Answer(id="a1", text="항상", is_correct=False),
                    Answer(id="a2", text="버퍼가 가득 찼을 때", is_correct=True),
                    Answer(id="a3", text="수신자가 없을 때 항상", is_correct=False),
                ],
            ),
        ],
    ),
]
