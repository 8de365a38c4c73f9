from models.event import EventType
from models.reflection import ReflectionResponse, get_reflection_prompt
from reconstruction.timeline import chronological


def collect_reflection_responses(events: list) -> list[ReflectionResponse]:
    """Every submitted reflection, oldest first. Prompt text falls back to the known definition."""
    responses = []
    for e in chronological(events):
        if e.event_type != EventType.REFLECTION_SUBMITTED.value or not e.reflection_response:
            continue
        prompt_text = e.reflection_prompt_text
        if not prompt_text:
            definition = get_reflection_prompt(e.reflection_prompt_id)
            prompt_text = definition.prompt if definition else ""
        responses.append(
            ReflectionResponse(
                prompt_id=e.reflection_prompt_id,
                prompt_text=prompt_text,
                response=e.reflection_response,
                timestamp=e.timestamp,
            )
        )
    return responses
