from uuid import uuid4

from src.codeprep.services.statistics import problem_acceptance_rate, summarize_solved, user_acceptance_rate


def test_problem_acceptance_rate_is_a_fraction():
    assert problem_acceptance_rate(0, 0) == 0.0
    assert problem_acceptance_rate(1, 4) == 0.25
    assert problem_acceptance_rate(3, 3) == 1.0


def test_user_acceptance_rate_is_a_rounded_percentage():
    assert user_acceptance_rate(0, 0) == 0
    assert user_acceptance_rate(1, 3) == 33
    assert user_acceptance_rate(2, 3) == 67
    assert user_acceptance_rate(5, 5) == 100


def test_rates_use_different_denominators():
    # One user solved one problem in three attempts; the problem saw four submissions overall.
    assert user_acceptance_rate(1, 3) == 33
    assert problem_acceptance_rate(2, 4) == 0.5


def test_summarize_counts_distinct_problems():
    two_sum, lru = uuid4(), uuid4()
    rows = [
        (two_sum, "easy", "Python"),
        (two_sum, "easy", "python3"),
        (two_sum, "easy", "71"),
        (two_sum, "easy", "Java"),
        (lru, "Medium", "Java"),
    ]

    summary = summarize_solved(rows, total_submissions=9)

    assert summary["total_solved"] == 2
    assert summary["total_submissions"] == 9
    assert summary["user_acceptance_rate"] == 22
    assert summary["solved_by_difficulty"] == {"easy": 1, "medium": 1, "hard": 0}
    assert summary["solved_by_language"] == {"Java": 2, "Python": 1}


def test_summarize_without_rows():
    summary = summarize_solved([], total_submissions=0)

    assert summary["total_solved"] == 0
    assert summary["user_acceptance_rate"] == 0
    assert summary["solved_by_language"] == {}
