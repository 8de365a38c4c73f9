"""
Design analytics derived purely from the persisted event stream.

Per config:
  total_design_time
      totalDesignTime of the last design_session_end event; without one, the
      running value carried by the latest event.
  iteration_count
      post_test_edit events that follow a test_conversation_started within
      the same design session. Zero whenever no test conversation started.
  test_conversation_count
      distinct testConversationId values across test_conversation_started.
  template_usage
      last role_selected / personality_selected wins; number of
      template_applied events.
  reflection_responses
      reflectionPromptId → response, last submission per prompt wins.
  category_breakdown / total_events
      event counts by category and overall.

Per assignment: averages of the per-config values over every config that has
events, plus role / personality popularity.
"""

from collections import Counter

from models.analytics import AssignmentDesignAnalytics, DesignAnalytics, TemplateUsage
from models.event import EventType


def _ordered(events: list) -> list:
    return sorted(events, key=lambda e: e.timestamp)


def _events_of(events: list, kind: EventType) -> list:
    return [e for e in events if e.event_type == kind.value]


def _total_design_time(events: list) -> int:
    ends = _events_of(events, EventType.DESIGN_SESSION_END)
    if ends:
        return ends[-1].total_design_time
    if events:
        return events[-1].total_design_time
    return 0


def _iteration_count(events: list) -> int:
    tested_sessions: set[str] = set()
    count = 0
    for e in events:
        if e.event_type == EventType.TEST_CONVERSATION_STARTED.value:
            tested_sessions.add(e.design_session_id)
        elif e.event_type == EventType.POST_TEST_EDIT.value and e.design_session_id in tested_sessions:
            count += 1
    return count


def _template_usage(events: list) -> TemplateUsage:
    roles = _events_of(events, EventType.ROLE_SELECTED)
    personalities = _events_of(events, EventType.PERSONALITY_SELECTED)
    return TemplateUsage(
        role_used=roles[-1].role_selected if roles else None,
        personality_used=personalities[-1].personality_selected if personalities else None,
        templates_applied=len(_events_of(events, EventType.TEMPLATE_APPLIED)),
    )


def _reflection_responses(events: list) -> dict[str, str]:
    responses: dict[str, str] = {}
    for e in _events_of(events, EventType.REFLECTION_SUBMITTED):
        if e.reflection_response:
            responses[e.reflection_prompt_id] = e.reflection_response
    return responses


def compute_design_analytics(events: list) -> DesignAnalytics:
    ordered = _ordered(events)
    test_ids = {e.test_conversation_id for e in _events_of(ordered, EventType.TEST_CONVERSATION_STARTED)}

    return DesignAnalytics(
        total_design_time=_total_design_time(ordered),
        iteration_count=_iteration_count(ordered),
        test_conversation_count=len(test_ids),
        template_usage=_template_usage(ordered),
        reflection_responses=_reflection_responses(ordered),
        category_breakdown=dict(Counter(e.event_category for e in ordered)),
        total_events=len(ordered),
    )


def compute_assignment_analytics(events: list) -> AssignmentDesignAnalytics:
    by_config: dict[int, list] = {}
    for e in events:
        if e.agent_config_id is not None:
            by_config.setdefault(e.agent_config_id, []).append(e)

    if not by_config:
        return AssignmentDesignAnalytics()

    per_config = [compute_design_analytics(config_events) for config_events in by_config.values()]
    n = len(per_config)

    role_usage = Counter(a.template_usage.role_used for a in per_config if a.template_usage.role_used)
    personality_usage = Counter(
        a.template_usage.personality_used for a in per_config if a.template_usage.personality_used
    )

    return AssignmentDesignAnalytics(
        total_students=n,
        average_design_time=round(sum(a.total_design_time for a in per_config) / n),
        average_iterations=round(sum(a.iteration_count for a in per_config) / n, 1),
        average_test_conversations=round(sum(a.test_conversation_count for a in per_config) / n, 1),
        role_usage_stats=dict(role_usage),
        personality_usage_stats=dict(personality_usage),
    )
