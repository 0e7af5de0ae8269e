from __future__ import annotations

from resume_docs.models.document import OffsetDocument
from resume_docs.models.edits import ApplyStyle, DeleteRange, RemoveBullets, SetParagraphStyle
from resume_docs.models.sections import SectionDescriptor, describe_sections
from resume_docs.services.google.docs_store import GoogleDocsStore
from resume_docs.services.pipeline.base_stage import DocumentStage
from resume_docs.services.pipeline.empty_line_sweeper import EmptyLineSweeper
from resume_docs.services.pipeline.marker_cleanup import MarkerCleanup
from resume_docs.services.pipeline.marker_styler import MarkerStyler
from resume_docs.services.pipeline.markers import REMOVAL_MARKER, wrap_bold
from resume_docs.services.pipeline.pipeline_orchestrator import PipelineStageEnum
from resume_docs.services.pipeline.placeholder_resolver import PlaceholderResolver, find_placeholders
from resume_docs.services.pipeline.section_pruner import SectionPruner
from resume_docs.services.pipeline.separator_fixer import SeparatorFixer, restyle_requests

from .conftest import STYLED_PAYLOAD, TEMPLATE, FakeDocsService, http_error

HEADINGS = ["EXPERIENCE", "PROJECTS", "EDUCATION", "LANGUAGE SKILLS", "TECHNICAL SKILLS"]


def _sections(*absent):
    return [SectionDescriptor(heading=heading, present=heading not in absent) for heading in HEADINGS]


def _run(make_store, make_orchestrator, text, stage_enum, stage, **settings):
    service, store = make_store(text)
    summary = make_orchestrator(store, **settings).execute_stage("doc-1", stage_enum, stage)
    return service, summary


# Section pruning


def test_section_pruner_removes_absent_section_up_to_next_heading(make_store, make_orchestrator):
    service, summary = _run(
        make_store, make_orchestrator, TEMPLATE, PipelineStageEnum.SECTION_PRUNING, SectionPruner(_sections("PROJECTS"))
    )

    lines = service.lines
    assert "PROJECTS" not in lines
    assert "{{project_1}}" not in service.text
    assert lines[lines.index("EDUCATION") - 1] == ""
    assert lines[lines.index("EDUCATION") - 2] == "{{experience_point_3_1}}"
    assert summary["sections_removed"] == ["PROJECTS"]


def test_section_pruner_leaves_present_sections_intact(make_store, make_orchestrator):
    service, _ = _run(
        make_store,
        make_orchestrator,
        TEMPLATE,
        PipelineStageEnum.SECTION_PRUNING,
        SectionPruner(_sections("PROJECTS", "EDUCATION")),
    )

    for kept in ("EXPERIENCE", "LANGUAGE SKILLS", "TECHNICAL SKILLS"):
        assert kept in service.lines
    for kept_token in ("{{experience_point_3_1}}", "{{language_skills}}", "{{technical_skills}}"):
        assert kept_token in service.text
    for gone in ("PROJECTS", "EDUCATION", "{{institution_2}}", "{{project_point_1_2}}"):
        assert gone not in service.text


def test_section_pruner_handles_trailing_section(make_store, make_orchestrator):
    service, summary = _run(
        make_store,
        make_orchestrator,
        TEMPLATE,
        PipelineStageEnum.SECTION_PRUNING,
        SectionPruner(_sections("TECHNICAL SKILLS")),
    )

    assert "TECHNICAL SKILLS" not in service.text
    # the blank line that preceded the heading becomes the last paragraph
    assert service.text.endswith("LANGUAGE SKILLS\n{{language_skills}}\n\n")
    assert summary["batches_failed"] == 0


def test_section_pruner_skips_missing_heading(make_store, make_orchestrator):
    text = "EXPERIENCE\nrole\n\nEDUCATION\nschool\n"
    service, summary = _run(
        make_store, make_orchestrator, text, PipelineStageEnum.SECTION_PRUNING, SectionPruner(_sections("PROJECTS"))
    )

    assert service.text == text
    assert service.batches == []
    assert summary["sections_not_found"] == ["PROJECTS"]


def test_section_pruner_rereads_between_sections(make_store, make_orchestrator):
    service, _ = _run(
        make_store,
        make_orchestrator,
        TEMPLATE,
        PipelineStageEnum.SECTION_PRUNING,
        SectionPruner(_sections("EXPERIENCE", "EDUCATION")),
    )

    assert len(service.batches) == 2
    assert service.reads == 3
    assert "PROJECTS" in service.lines
    assert "{{project_point_1_2}}" in service.text


# Placeholder resolution


def test_placeholder_resolver_marks_empty_bullets_for_removal(make_store, make_orchestrator):
    text = "{{name}}\n{{experience_point_1_1}}\n{{experience_point_1_3}}\n{{name}}\n"
    fields = {"name": "**Ada** Lovelace", "experience_point_1_1": "Wrote notes", "experience_point_1_3": ""}

    service, summary = _run(
        make_store, make_orchestrator, text, PipelineStageEnum.PLACEHOLDER_RESOLUTION, PlaceholderResolver(fields)
    )

    assert service.lines == ["Ada Lovelace", "Wrote notes", REMOVAL_MARKER, "Ada Lovelace"]
    assert len(service.batches) == 1
    assert len(service.batches[0]) == 3
    assert summary["placeholders_found"] == 3
    assert summary["marked_for_removal"] == 1


def test_placeholder_resolver_keeps_skills_literal_and_marks_missing_keys(make_store, make_orchestrator):
    text = "{{technical_skills}}\n{{project_point_2_1}}\n{{unknown}}\n"
    fields = {"technical_skills": "**Go** | Rust"}

    service, summary = _run(
        make_store, make_orchestrator, text, PipelineStageEnum.PLACEHOLDER_RESOLUTION, PlaceholderResolver(fields)
    )

    assert service.lines == ["**Go** | Rust", REMOVAL_MARKER, ""]
    assert summary["unresolved"] == ["project_point_2_1", "unknown"]


def test_find_placeholders_returns_distinct_tokens_in_order():
    service = FakeDocsService("{{b}} {{a}}\n{{b}}\nno tokens {here}\n")
    snapshot = OffsetDocument.from_api(service.handle_get("doc-1"))

    assert find_placeholders(snapshot) == ["{{b}}", "{{a}}"]


# Marker styling


def test_marker_styler_strips_delimiters_and_bolds_payloads(make_store, make_orchestrator):
    text = f"Uses {wrap_bold('Flask', 'b1')} daily\nAlso {wrap_bold('Go', 'b2')}\n"

    service, summary = _run(
        make_store,
        make_orchestrator,
        text,
        PipelineStageEnum.MARKER_STYLING,
        MarkerStyler(pass_limit=50, chunk_size=10),
    )

    assert service.lines == ["Uses Flask daily", "Also Go"]
    assert service.bold_runs() == ["Flask", "Go"]
    assert summary["passes"] == 2
    assert summary["spans_stripped"] == 2
    assert summary["ceiling_reached"] is False


def test_marker_styler_bolds_every_matching_occurrence(make_store, make_orchestrator):
    text = f"{wrap_bold('Go', 'b1')} first\nGo second\n"

    service, summary = _run(
        make_store, make_orchestrator, text, PipelineStageEnum.MARKER_STYLING, MarkerStyler(chunk_size=1)
    )

    assert service.bold_runs() == ["Go", "Go"]
    assert summary["ranges_styled"] == 2
    # one strip batch plus one style batch per chunk
    assert len(service.batches) == 3


def test_marker_styler_stops_at_pass_ceiling(make_store, make_orchestrator):
    text = "\n".join(f"{wrap_bold(f'item{idx}', f'b{idx}')}" for idx in range(1, 4)) + "\n"

    service, summary = _run(
        make_store, make_orchestrator, text, PipelineStageEnum.MARKER_STYLING, MarkerStyler(pass_limit=2)
    )

    assert service.lines[:2] == ["item1", "item2"]
    assert service.lines[2] == wrap_bold("item3", "b3")
    assert summary["ceiling_reached"] is True
    assert summary["passes"] == 2


def test_marker_styler_skips_span_whose_strip_failed(make_store, make_orchestrator):
    text = f"{wrap_bold('one', 'b1')}\n{wrap_bold('two', 'b2')}\n"
    service, store = make_store(text)
    service.batch_errors = [http_error(400, "conflict")]

    summary = make_orchestrator(store).execute_stage("doc-1", PipelineStageEnum.MARKER_STYLING, MarkerStyler())

    assert service.lines == [wrap_bold("one", "b1"), "two"]
    assert service.bold_runs() == ["two"]
    assert summary["batches_failed"] == 1


def test_marker_styler_is_noop_without_markers(make_store, make_orchestrator):
    service, summary = _run(
        make_store, make_orchestrator, "plain text\n", PipelineStageEnum.MARKER_STYLING, MarkerStyler()
    )

    assert service.batches == []
    assert summary["passes"] == 0


# Marker cleanup


def test_marker_cleanup_removes_marked_lines_in_one_batch(make_store, make_orchestrator):
    text = f"keep\n{REMOVAL_MARKER}\nalso keep\n{REMOVAL_MARKER}\n{REMOVAL_MARKER}\n"

    service, summary = _run(make_store, make_orchestrator, text, PipelineStageEnum.MARKER_CLEANUP, MarkerCleanup())

    assert service.text == "keep\nalso keep\n"
    assert len(service.batches) == 1
    starts = [request["deleteContentRange"]["range"]["startIndex"] for request in service.batches[0]]
    assert starts == sorted(starts, reverse=True)
    assert summary["lines_removed"] == 3


# Empty line sweeping


def test_sweeper_keeps_lines_next_to_retained_headings(make_store, make_orchestrator):
    text = "Name\n\nEXPERIENCE\n | \nrole\n\n | \n\nthing\n\nEDUCATION\nschool\n"

    service, summary = _run(
        make_store,
        make_orchestrator,
        text,
        PipelineStageEnum.EMPTY_LINE_SWEEP,
        EmptyLineSweeper({"EXPERIENCE", "EDUCATION"}),
    )

    assert service.lines == ["Name", "", "EXPERIENCE", " | ", "role", "thing", "", "EDUCATION", "school"]
    assert summary["kept_near_heading"] == 3


def test_sweeper_ignores_headings_that_are_not_retained(make_store, make_orchestrator):
    text = "intro\n\nPROJECTS\nbody\n"

    service, _ = _run(
        make_store, make_orchestrator, text, PipelineStageEnum.EMPTY_LINE_SWEEP, EmptyLineSweeper({"EXPERIENCE"})
    )

    assert service.lines == ["intro", "PROJECTS", "body"]


def test_sweeper_removes_trailing_blank_line(make_store, make_orchestrator):
    service, summary = _run(
        make_store, make_orchestrator, "body\n\n", PipelineStageEnum.EMPTY_LINE_SWEEP, EmptyLineSweeper(set())
    )

    assert service.text == "body\n"
    assert summary["blank_removed"] == 1


# Separator fixing


def test_separator_fixer_joins_filled_pairs_only(make_store, make_orchestrator):
    text = "Acme Remote\nState Uni BSc\nGlobex \n"
    fields = {
        "company_1": wrap_bold("Acme", "b1"),
        "company_location_1": "Remote",
        "institution_1": "State Uni",
        "degree_1": "**BSc**",
        "company_2": "Globex",
        "company_location_2": "",
    }

    service, summary = _run(
        make_store, make_orchestrator, text, PipelineStageEnum.SEPARATOR_FIX, SeparatorFixer(fields)
    )

    assert service.lines == ["Acme | Remote", "State Uni | BSc", "Globex "]
    assert summary["pairs_fixed"] == 2


def test_describe_sections_feeds_pruner(sample_record):
    sample_record.projects = []
    pruner = SectionPruner(describe_sections(sample_record))

    assert pruner.summary()["sections_absent"] == ["PROJECTS"]


class _HeadingWithoutStart(FakeDocsService):
    """Reports one heading paragraph without its ``startIndex``."""

    def __init__(self, text, heading):
        super().__init__(text)
        self.heading = heading

    def handle_get(self, document_id):
        payload = super().handle_get(document_id)
        for element in payload["body"]["content"]:
            runs = (element.get("paragraph") or {}).get("elements") or []
            if "".join(run["textRun"]["content"] for run in runs) == f"{self.heading}\n":
                element.pop("startIndex")
        return payload


def test_section_pruner_skips_heading_without_offsets(make_orchestrator):
    service = _HeadingWithoutStart(TEMPLATE, "PROJECTS")
    store = GoogleDocsStore(service, read_retries=0)

    summary = make_orchestrator(store).execute_stage(
        "doc-1", PipelineStageEnum.SECTION_PRUNING, SectionPruner(_sections("PROJECTS", "EDUCATION"))
    )

    assert summary["sections_skipped"] == ["PROJECTS"]
    assert summary["sections_removed"] == ["EDUCATION"]
    assert "PROJECTS\n{{project_1}}\n{{project_point_1_1}}\n{{project_point_1_2}}\n\nLANGUAGE SKILLS\n" in service.text
    assert "{{institution_1}}" not in service.text
    assert len(service.batches) == 1


def test_plan_delete_restores_style_of_absorbed_paragraph():
    snapshot = OffsetDocument.from_api(STYLED_PAYLOAD)
    stage = DocumentStage()

    assert stage.plan_delete(snapshot, 12, 18) == [DeleteRange(11, 17), RemoveBullets(6, 12)]
    assert stage.plan_delete(snapshot, 6, 18) == [
        DeleteRange(5, 17),
        SetParagraphStyle(1, 6, named_style="HEADING_1"),
        RemoveBullets(1, 6),
    ]
    # ranges away from the body end need no style repair
    assert stage.plan_delete(snapshot, 6, 12) == [DeleteRange(6, 12)]


def test_section_pruner_repairs_style_when_pruning_last_section():
    snapshot = OffsetDocument.from_api(STYLED_PAYLOAD)
    pruner = SectionPruner([SectionDescriptor(heading="Plain", present=False)])

    batch = pruner.plan_removal(snapshot, "PLAIN")

    assert batch.requests == [DeleteRange(5, 17), SetParagraphStyle(1, 6, named_style="HEADING_1"), RemoveBullets(1, 6)]


def test_separator_fixer_keeps_bold_confined_to_left_value(make_store, make_orchestrator):
    service, store = make_store("Acme Remote\nState Uni BSc\n")
    service.bold[0:4] = [True] * 4
    fields = {"company_1": "Acme", "company_location_1": "Remote", "institution_1": "State Uni", "degree_1": "BSc"}

    summary = make_orchestrator(store).execute_stage(
        "doc-1", PipelineStageEnum.SEPARATOR_FIX, SeparatorFixer(fields)
    )

    assert service.lines == ["Acme | Remote", "State Uni | BSc"]
    assert service.bold_runs() == ["Acme"]
    assert summary["pairs_fixed"] == 2
    assert summary["styles_restored"] == 1
    # join batch plus one restore batch
    assert len(service.batches) == 2


def test_restyle_requests_group_contiguous_changes():
    chars = [(5, True), (6, True), (7, False), (8, True), (9, False)]

    requests = restyle_requests(chars, [False, False, False, True, True])

    assert requests == [ApplyStyle(5, 7, value=False), ApplyStyle(9, 10, value=True)]
