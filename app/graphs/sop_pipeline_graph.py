"""One-shot SOP pipeline LangGraph.

Runs every stage for one chapter/objective in sequence:
select -> extract -> filter -> merge -> generate -> (improve) -> (save).
The first failing stage ends the graph; its error is returned and the run
keeps the outputs of the stages that succeeded.
"""

from dataclasses import dataclass, field
from typing import Any

from langgraph.graph import END, StateGraph

from app.core.logging import get_logger
from app.core.schemas_extraction import SourceDocument
from app.core.schemas_sop import RecordStatus
from app.core.sop_pipeline import PipelineError, PipelineRun, SOPPipeline, StageResult

logger = get_logger(__name__)

MAX_STEPS = 10


@dataclass
class SOPPipelineState:
    """State for the one-shot SOP pipeline graph."""

    # Input fields
    pipeline: SOPPipeline
    run: PipelineRun
    chapter_code: str
    objective_code: str | None = None
    uploads: list[SourceDocument] = field(default_factory=list)
    include_stored_sops: bool = True
    filter_prompt: str | None = None
    instructions: str | None = None
    prompt_template_id: str | None = None
    improve_sop: bool = False
    improve_instructions: str | None = None
    save_sop: bool = False
    save_status: RecordStatus = "Draft"
    with_pdf: bool = False

    # Processing state
    step_count: int = 0
    completed: list[str] = field(default_factory=list)
    error: str | None = None


def _check_max_steps(state: SOPPipelineState) -> SOPPipelineState:
    """Check and increment step count, raise if exceeded."""
    state.step_count += 1
    if state.step_count > MAX_STEPS:
        raise RuntimeError(f"Exceeded max steps ({MAX_STEPS})")
    return state


async def _run_stage(state: SOPPipelineState, stage: str, call) -> dict[str, Any]:
    """Run one pipeline stage; validation errors end the graph like failures."""
    state = _check_max_steps(state)
    try:
        result = call()
        if not isinstance(result, StageResult):
            result = await result
    except PipelineError as e:
        result = StageResult(success=False, error=str(e))

    if not result.success:
        return {"error": result.error, "step_count": state.step_count}
    return {"completed": [*state.completed, stage], "step_count": state.step_count}


async def select_context(state: SOPPipelineState) -> dict[str, Any]:
    return await _run_stage(
        state,
        "select",
        lambda: state.pipeline.select_context(state.run, state.chapter_code, state.objective_code),
    )


async def extract(state: SOPPipelineState) -> dict[str, Any]:
    return await _run_stage(
        state,
        "extract",
        lambda: state.pipeline.run_extract(
            state.run, uploads=state.uploads, include_stored_sops=state.include_stored_sops
        ),
    )


async def filter_content(state: SOPPipelineState) -> dict[str, Any]:
    return await _run_stage(
        state, "filter", lambda: state.pipeline.run_filter(state.run, state.filter_prompt)
    )


async def merge(state: SOPPipelineState) -> dict[str, Any]:
    return await _run_stage(state, "merge", lambda: state.pipeline.run_merge(state.run))


async def generate(state: SOPPipelineState) -> dict[str, Any]:
    return await _run_stage(
        state,
        "generate",
        lambda: state.pipeline.run_generate(
            state.run,
            instructions=state.instructions,
            prompt_template_id=state.prompt_template_id,
        ),
    )


async def improve(state: SOPPipelineState) -> dict[str, Any]:
    return await _run_stage(
        state, "improve", lambda: state.pipeline.run_improve(state.run, state.improve_instructions)
    )


async def save(state: SOPPipelineState) -> dict[str, Any]:
    return await _run_stage(
        state,
        "save",
        lambda: state.pipeline.save(state.run, status=state.save_status, with_pdf=state.with_pdf),
    )


def _continue_or_end(next_node: str):
    def route(state: SOPPipelineState) -> str:
        return END if state.error else next_node

    return route


def _after_generate(state: SOPPipelineState) -> str:
    if state.error:
        return END
    if state.improve_sop:
        return "improve"
    return "save" if state.save_sop else END


def _after_improve(state: SOPPipelineState) -> str:
    if state.error or not state.save_sop:
        return END
    return "save"


def _build_graph() -> StateGraph:
    """Build the one-shot SOP pipeline graph."""
    graph = StateGraph(SOPPipelineState)

    graph.add_node("select", select_context)
    graph.add_node("extract", extract)
    graph.add_node("filter", filter_content)
    graph.add_node("merge", merge)
    graph.add_node("generate", generate)
    graph.add_node("improve", improve)
    graph.add_node("save", save)

    graph.set_entry_point("select")
    graph.add_conditional_edges("select", _continue_or_end("extract"))
    graph.add_conditional_edges("extract", _continue_or_end("filter"))
    graph.add_conditional_edges("filter", _continue_or_end("merge"))
    graph.add_conditional_edges("merge", _continue_or_end("generate"))
    graph.add_conditional_edges("generate", _after_generate)
    graph.add_conditional_edges("improve", _after_improve)
    graph.add_edge("save", END)

    return graph


_compiled_graph = _build_graph().compile()


async def run_sop_pipeline(
    pipeline: SOPPipeline,
    run: PipelineRun,
    chapter_code: str,
    objective_code: str | None = None,
    **options: Any,
) -> tuple[list[str], str | None]:
    """
    Run every pipeline stage for one chapter/objective.

    Args:
        pipeline: Stage runner bound to the backend and AI adapters
        run: Run to populate (normally fresh from the run store)
        chapter_code: Three-letter chapter code
        objective_code: Objective code such as ``COP.1``
        **options: Remaining ``SOPPipelineState`` inputs (uploads, save_sop, ...)

    Returns:
        Tuple of (completed stage names, error of the failing stage or None)
    """
    logger.info(
        f"Starting one-shot SOP pipeline for {chapter_code} {objective_code or ''}".strip(),
        extra={"run_id": run.run_id, "chapter_code": chapter_code, "objective_code": objective_code},
    )

    initial_state = SOPPipelineState(
        pipeline=pipeline,
        run=run,
        chapter_code=chapter_code,
        objective_code=objective_code,
        **options,
    )
    final_state = await _compiled_graph.ainvoke(initial_state)

    # StateGraph returns a dict, not the dataclass
    if isinstance(final_state, dict):
        completed = final_state.get("completed", [])
        error = final_state.get("error")
    else:
        completed = final_state.completed
        error = final_state.error

    logger.info(
        f"One-shot SOP pipeline finished: {', '.join(completed) or 'no stages'}"
        + (f" (failed: {error})" if error else ""),
        extra={"run_id": run.run_id},
    )
    return completed, error
