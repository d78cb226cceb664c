"""
Human-readable crawl report.

Joins leak findings with the third-party/tracker classification of
the requests and navigations they were found in, keeps the ones that
matter, and renders them together with DOM password leaks, field
value reads and crawl statistics.

Missing collector data never aborts the report; each missing section
is replaced by an explicit warning line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from leak_detect import config
from leak_detect.analysis import field_reads, frame_stack, leak_search
from leak_detect.models import crawl_data, leaks
from leak_detect.utils import errors, logger

log = logger.create_logger("Summary")


# ============================================================================
# Attribution
# ============================================================================


def _lookup(collection: Sequence[object] | None, index: int, name: str) -> object:
    if collection is None:
        raise errors.MalformedFindEntryError(f"Find entry refers to {name} {index}, but there is no {name} data")
    if not 0 <= index < len(collection):
        raise errors.MalformedFindEntryError(
            f"Find entry refers to {name} {index}, but only {len(collection)} exist"
        )
    return collection[index]


def resolve_leaks(
    leaked_values: Sequence[leaks.FindEntry],
    requests: Sequence[crawl_data.RequestRecord] | None,
    visited_targets: Sequence[crawl_data.VisitedTarget] | None,
) -> list[leaks.AnnotatedLeak]:
    """Attach the request or visited target each finding points at.

    Raises:
        MalformedFindEntryError: An index does not resolve.
    """
    annotated: list[leaks.AnnotatedLeak] = []
    for entry in leaked_values:
        if entry.request_index is not None:
            request = _lookup(requests, entry.request_index, "request")
            annotated.append(leaks.AnnotatedLeak(entry=entry, request=request))
        else:
            target = _lookup(visited_targets, entry.visited_target_index, "visited target")  # type: ignore[arg-type]
            annotated.append(leaks.AnnotatedLeak(entry=entry, visited_target=target))
    return annotated


def select_important_leaks(
    annotated: Sequence[leaks.AnnotatedLeak],
) -> tuple[list[leaks.AnnotatedLeak], bool]:
    """Keep the leaks that went to third parties or trackers.

    Returns:
        The kept leaks in their original order, and whether any
        classification was available. Without classification nothing
        can be judged, so every leak is kept.
    """
    has_domain_info = any(leak.source.third_party is not None for leak in annotated)
    if not has_domain_info:
        return list(annotated), False
    return [
        leak for leak in annotated
        if leak.source.third_party is True or leak.source.tracker is True
    ], True


# ============================================================================
# Rendering
# ============================================================================


class _ReportWriter:
    """Accumulates report text."""

    def __init__(self, test_started: float) -> None:
        self._parts: list[str] = []
        self._test_started = test_started

    def write(self, text: str) -> None:
        self._parts.append(text)

    def writeln(self, text: str = "") -> None:
        if text:
            self._parts.append(text)
        self._parts.append("\n")

    def time(self, timestamp: float) -> str:
        return f"⌚️{(timestamp - self._test_started) / 1e3:.1f}s"

    def getvalue(self) -> str:
        return "".join(self._parts)


def _write_dom_password_leaks(out: _ReportWriter, fields: crawl_data.FieldsCollectorData) -> None:
    if not fields.password_leaks:
        return
    out.writeln("⚠️ 🔑 Password was written to the DOM:")
    for leak in fields.password_leaks:
        out.writeln(
            f'{out.time(leak.time)} to attribute "{leak.attribute}" on element'
            f' "{leaks.selector_str(leak.selector)}"; frame stack (bottom→top):'
        )
        for frame in leak.frame_stack:
            out.writeln(f"\t{frame}")
    out.writeln("If a script then extracts the DOM it might leak the password\n")


def _write_leaks(
    out: _ReportWriter,
    leaked_values: Sequence[leaks.FindEntry],
    data: crawl_data.CollectorData,
) -> None:
    annotated = resolve_leaks(
        leaked_values,
        data.requests,
        data.fields.visited_targets if data.fields else None,
    )
    important, has_domain_info = select_important_leaks(annotated)
    log.info("Leaks attributed", {
        "findings": len(annotated),
        "important": len(important),
        "classified": has_domain_info,
    })

    if not important:
        out.writeln(f"✔️ No leaks {'to third parties ' if leaked_values else ''}detected\n")
        return

    out.writeln(f"ℹ️ 🖅 Values were sent in web requests{' to third parties' if has_domain_info else ''}:")
    for leak in important:
        entry = leak.entry
        part = f'header "{entry.header}"' if entry.part == "header" else entry.part
        leak_time = leak.time
        out.write(f"{out.time(leak_time) + ' ' if leak_time is not None else ''}{entry.type} sent in {part}")
        classification = frame_stack.third_party_info_str(leak.source)
        if leak.request is not None:
            out.write(f' of request to {classification}"{leak.request.url}"')
            if leak.request.stack:
                out.writeln(" by:")
                for frame in leak.request.stack:
                    out.writeln(f"\t{frame}")
            out.writeln()
        else:
            out.writeln(f" for navigation to {classification}{leak.visited_target.url}")  # type: ignore[union-attr]
    out.writeln()


def _write_field_reads(out: _ReportWriter, apis: crawl_data.ApiCallData, fill: config.FillValues) -> None:
    groups = field_reads.group_field_value_calls(apis.saved_calls, (fill.email, fill.password))
    if not groups:
        return
    out.writeln("ℹ️ 🔍 Field value reads:")
    for group in groups:
        call = group.call
        icon = "🔑 " if call.custom.value == fill.password else "📧 "
        out.write(f"{' '.join(out.time(t) for t in group.times)} access to {icon}value of {call.custom.type} field")
        if call.custom.selector_chain:
            out.write(f' "{leaks.selector_str(call.custom.selector_chain)}"')
        out.writeln(" by:")
        for frame in frame_stack.compress_frame_stack(call.stack, call.stack_info):
            out.writeln(f"\t{frame}")
        out.writeln()
    out.writeln()


def _write_statistics(out: _ReportWriter, fields: crawl_data.FieldsCollectorData) -> None:
    def count(event_type: str) -> int:
        return sum(1 for event in fields.events if event.type == event_type)

    out.writeln("📊 Automated crawl statistics:\n")
    out.writeln(f"📑 {len(fields.fields)} fields found")
    out.writeln(f"✒️ {count('fill')} fields filled")
    out.writeln(f"⏎ {count('submit')} fields submitted")
    out.writeln(f"🔗 {len(fields.links or [])} links found")
    out.writeln(f"🖱 {count('link-click')} links clicked")

    if fields.errors:
        out.writeln("\nFields collector errors:")
        for error in fields.errors:
            marker = "❌️" if error.level == "error" else "⚠️"
            context = f"{error.context[0]} " if error.context and isinstance(error.context[0], str) else ""
            out.writeln(f"\t{marker} {context}{error.error}")
        out.writeln()


def get_summary(output: leaks.OutputFile, fill: config.FillValues) -> str:
    """Render the full text report for one crawl.

    Args:
        output: The crawl result and the leaks found in it.
        fill: The values the crawler typed, used to label findings.

    Returns:
        The report, ending in a newline.

    Raises:
        MalformedFindEntryError: A finding does not resolve to a
            request or visited target.
    """
    result = output.crawl_result
    data = result.data
    out = _ReportWriter(result.test_started)

    out.writeln(f"Crawl of {result.initial_url}")
    if result.final_url != result.initial_url:
        out.writeln(f"URL after redirects: {result.final_url}")
    out.writeln(f"Took {logger.format_duration(result.test_finished - result.test_started)}")
    out.writeln()

    if data.fields is not None:
        _write_dom_password_leaks(out, data.fields)
    else:
        out.writeln("❌️ No fields collector data, it probably crashed\n")

    if data.requests is None:
        out.writeln("⚠️ No request collector data found")
    if output.leaked_values is not None:
        _write_leaks(out, output.leaked_values, data)
    else:
        out.writeln("⚠️ No leaked value data found\n")

    if data.apis is not None:
        _write_field_reads(out, data.apis, fill)
    else:
        out.writeln("⚠️ No API call data found\n")

    if data.fields is not None:
        _write_statistics(out, data.fields)

    return out.getvalue()


async def build_report(
    output: leaks.OutputFile,
    searchers: Mapping[str, leak_search.ValueSearcher],
    fill: config.FillValues,
) -> str:
    """Search for leaks when *output* has none recorded yet, then render the report."""
    log.start_timer("report")
    if output.leaked_values is None:
        leaked_values = await leak_search.find_leaks_for_crawl(searchers, output.crawl_result)
        output = output.model_copy(update={"leaked_values": leaked_values})
    report = get_summary(output, fill)
    log.end_timer("report", "Report generated")
    return report
