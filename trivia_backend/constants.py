from enum import IntEnum

# Points gained (or lost) for answering a question of each difficulty.
POINT_VALUES: dict[str, int] = {
    "easy": 10,
    "medium": 25,
    "hard": 50,
}

NO_ANSWER = -1

ROOM_ID_LENGTH = 5
ROOM_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"

LOBBY_ID = "lobby"
ANY_LABEL = "Any"

# Open Trivia DB response codes.
RESPONSE_OK = 0
RESPONSE_TOKEN_NOT_FOUND = 3
RESPONSE_TOKEN_EMPTY = 4


class AnswerResult(IntEnum):
    INCORRECT = 0
    CORRECT = 1
    SKIPPED = 2


__all__ = [
    "POINT_VALUES",
    "NO_ANSWER",
    "ROOM_ID_LENGTH",
    "ROOM_ID_ALPHABET",
    "LOBBY_ID",
    "ANY_LABEL",
    "RESPONSE_OK",
    "RESPONSE_TOKEN_NOT_FOUND",
    "RESPONSE_TOKEN_EMPTY",
    "AnswerResult",
]
