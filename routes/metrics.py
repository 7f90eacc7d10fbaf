from collections import Counter

from fastapi import APIRouter, Request
from fastapi.responses import Response

from services.metrics import render_prometheus

router = APIRouter(tags=["metrics"])


def _render_state_gauge(request: Request) -> str:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return ""
    by_state = Counter((s.policy, s.state) for s in engine.list_statuses())
    lines = ["# TYPE subscriptions_by_state gauge"]
    for (policy, state), count in sorted(by_state.items()):
        lines.append(f'subscriptions_by_state{{policy="{policy}",state="{state}"}} {count}')
    return "\n".join(lines) + "\n"


@router.get("/metrics")
async def metrics(request: Request):
    body = render_prometheus() + _render_state_gauge(request)
    return Response(content=body, media_type="text/plain; version=0.0.4")
