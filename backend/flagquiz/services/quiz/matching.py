from typing import NamedTuple

import Levenshtein


class AcceptedNames(NamedTuple):
    # `primary` is the name in the language currently on screen
    primary: str
    alternate: str


def typo_allowance(name: str) -> int:
    """Edits tolerated for a name: 2 for names longer than 4 characters, else 1."""
    return 2 if len(name) > 4 else 1


def normalize(text: str) -> str:
    return (text or '').strip().lower()


def is_correct(answer: str, accepted: AcceptedNames) -> bool:
    """Return True if `answer` is within the typo allowance of either name.

    The allowance is computed once from the displayed name and applied to
    both comparisons, so a player may answer in either language.
    """
    guess = normalize(answer)
    threshold = typo_allowance(accepted.primary)
    return any(
        Levenshtein.distance(guess, candidate.lower()) <= threshold
        for candidate in (accepted.primary, accepted.alternate)
    )
