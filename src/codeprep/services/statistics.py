"""
Read-time statistics.

Two acceptance rates exist and are deliberately kept apart:

* ``problem_acceptance_rate``: accepted submissions / all submissions for one
  problem, a fraction in [0, 1].
* ``user_acceptance_rate``: distinct solved problems / all submissions of one
  user, a whole percentage.
"""
from typing import Iterable, Optional
from uuid import UUID

from src.codeprep.utils.languages import get_language_name

DIFFICULTIES = ("easy", "medium", "hard")


def problem_acceptance_rate(accepted: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return accepted / total


def user_acceptance_rate(solved: int, total_submissions: int) -> int:
    if total_submissions <= 0:
        return 0
    return round(solved / total_submissions * 100)


def summarize_solved(
    accepted_rows: Iterable[tuple[UUID, Optional[str], Optional[str]]],
    total_submissions: int,
) -> dict:
    """
    Bucket a user's accepted submissions.

    Args:
        accepted_rows: (problem_id, difficulty, language) per accepted submission,
            duplicates allowed
        total_submissions: Number of submissions the user made, any status

    Returns:
        dict: totals, solved_by_difficulty and solved_by_language, each counting
        distinct problems
    """
    difficulty_by_problem: dict[UUID, str] = {}
    problems_by_language: dict[str, set[UUID]] = {}

    for problem_id, difficulty, language in accepted_rows:
        difficulty_by_problem.setdefault(problem_id, (difficulty or "unknown").lower())
        problems_by_language.setdefault(get_language_name(language), set()).add(problem_id)

    solved_by_difficulty = {difficulty: 0 for difficulty in DIFFICULTIES}
    for difficulty in difficulty_by_problem.values():
        if difficulty in solved_by_difficulty:
            solved_by_difficulty[difficulty] += 1

    total_solved = len(difficulty_by_problem)
    return {
        "total_submissions": total_submissions,
        "total_solved": total_solved,
        "user_acceptance_rate": user_acceptance_rate(total_solved, total_submissions),
        "solved_by_difficulty": solved_by_difficulty,
        "solved_by_language": {
            language: len(problems) for language, problems in sorted(problems_by_language.items())
        },
    }
