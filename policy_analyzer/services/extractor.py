"""
Step 1 of the pipeline: policy chunks → extracted features.

One LLM call per chunk, fired concurrently and awaited together. Results
come back in chunk order regardless of completion order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait

from policy_analyzer.chunker import Chunk
from policy_analyzer.config import Settings
from policy_analyzer.exceptions import ResponseParseError, UpstreamAPIError
from policy_analyzer.llm import LLMClient, generate_json
from policy_analyzer.parsing import ParseResult
from policy_analyzer.prompts.extraction_prompt import EXTRACTION_SCHEMA, build_extraction_prompt
from policy_analyzer.ruleset import Ruleset
from policy_analyzer.schemas import ExtractionPayload

logger = logging.getLogger(__name__)


def extract_chunk(
    chunk: Chunk, total: int, client: LLMClient, ruleset: Ruleset, settings: Settings
) -> ParseResult:
    prompt = build_extraction_prompt(chunk.text, ruleset, part=chunk.index + 1, total_parts=total)
    logger.info("Extracting chunk %d/%d (%d chars)", chunk.index + 1, total, len(chunk.text))
    result = generate_json(
        client,
        prompt,
        ExtractionPayload,
        max_tokens=settings.extraction_max_tokens,
        json_schema=EXTRACTION_SCHEMA,
    )
    if result.ok:
        logger.info(
            "Chunk %d/%d: %d features (%s)",
            chunk.index + 1, total, len(result.data.features), result.status,
        )
    return result


def extract_all(
    chunks: list[Chunk], client: LLMClient, ruleset: Ruleset, settings: Settings
) -> list[ParseResult]:
    """
    Run extraction for every chunk concurrently.

    Raises UpstreamAPIError if any call fails or the overall timeout passes,
    ResponseParseError if no chunk produced usable JSON. Chunks that failed
    to parse are dropped from the returned list.
    """
    total = len(chunks)
    pool = ThreadPoolExecutor(max_workers=max(1, total), thread_name_prefix="extract")
    try:
        futures = [
            pool.submit(extract_chunk, chunk, total, client, ruleset, settings) for chunk in chunks
        ]
        done, not_done = wait(futures, timeout=settings.request_timeout_seconds)
        if not_done:
            raise UpstreamAPIError(
                f"Extraction timeout after {settings.request_timeout_seconds:g}s "
                f"({len(not_done)}/{total} chunks pending)"
            )
        # result() re-raises the first chunk failure, like an all-or-nothing gather
        results = [future.result() for future in futures]
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    usable = []
    for chunk, result in zip(chunks, results):
        if result.ok:
            usable.append(result)
        else:
            logger.warning("Chunk %d/%d produced no usable JSON: %s", chunk.index + 1, total, result.errors[:1])

    if not usable:
        raise ResponseParseError("LLM returned no parseable JSON for any chunk")
    return usable
