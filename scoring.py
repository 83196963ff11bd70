"""Client-side scoring of a training session.

A transcription is correct only when it equals the expected answer exactly.
The server stores whatever totals the client sends, so these helpers are the
single place where attempt totals and accuracy are produced.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

import schemas


def score_item(user_input: str, correct_answer: str) -> bool:
    return user_input == correct_answer


def score_image(image: schemas.TrainingImageSchema, inputs: Sequence[str], time_taken: int) -> schemas.UserResult:
    """Build the UserResult for one image from the trainee's inputs, in item order.

    Missing inputs count as empty strings.
    """
    items = []
    for index, item in enumerate(image.items):
        user_input = inputs[index] if index < len(inputs) else ""
        items.append(schemas.UserResultItem(
            prompt=item.prompt,
            user_input=user_input,
            is_correct=score_item(user_input, item.correct_answer),
        ))
    return schemas.UserResult(image_id=image.id, items=items, time_taken=time_taken)


def calculate_accuracy(correct_items: int, total_items: int) -> float:
    """Percentage rounded half-up to one decimal; 0.0 for an empty session."""
    if total_items <= 0:
        return 0.0
    ratio = Decimal(correct_items / total_items * 100)
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def summarize_results(username: str, timestamp: int, results: List[schemas.UserResult]) -> schemas.TrainingAttemptCreate:
    total_items = sum(len(result.items) for result in results)
    correct_items = sum(1 for result in results for item in result.items if item.is_correct)
    total_time = sum(result.time_taken for result in results)
    return schemas.TrainingAttemptCreate(
        username=username,
        timestamp=timestamp,
        results=results,
        total_time=total_time,
        total_items=total_items,
        correct_items=correct_items,
        accuracy=calculate_accuracy(correct_items, total_items),
    )
