"""Tests for the pipeline stages."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import LLM_TEXT, FakeGitHub, make_analysis, make_repo
from gitscribe.domain.entities.documentation import (
    DocLanguage,
    DocOutputFormat,
    DocSection,
    DocSectionType,
    GeneratedDocs,
)
from gitscribe.domain.entities.repository import RepoRef
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.exceptions import GitHubError
from gitscribe.domain.ports.config import RAGConfig
from gitscribe.domain.ports.github import ContentItem
from gitscribe.domain.ports.llm import LLMResponse
from gitscribe.domain.ports.rag import Chunk
from gitscribe.infrastructure.agents.docs_planner import (
    DEFAULT_SECTIONS,
    default_plan,
    docs_planner_node,
    plan_from_json,
)
from gitscribe.infrastructure.agents.docs_writer import docs_writer_node, first_markdown
from gitscribe.infrastructure.agents.git_ops import commit_message, commit_path, git_ops_node
from gitscribe.infrastructure.agents.quality_analyzer import quality_analyzer_node
from gitscribe.infrastructure.agents.refactor_proposal import proposal_from_json, refactor_proposal_node
from gitscribe.infrastructure.agents.repo_analysis import (
    detect_frameworks,
    estimate_complexity,
    manifest_dependencies,
    repo_analysis_node,
)
from gitscribe.infrastructure.agents.repo_discovery import repo_discovery_node


def llm_returning(mock_llm, content: str):
    mock_llm.generate = AsyncMock(return_value=LLMResponse(content=content, model="test-model"))
    return mock_llm


def analyses_for(*names):
    return {n: make_analysis(n) for n in names}


class TestRepoDiscovery:
    """Tests for repo_discovery_node."""

    @pytest.mark.asyncio
    async def test_keeps_valid_selection(self, fake_github, three_repos):
        result = await repo_discovery_node({"selected_repos": three_repos}, fake_github)

        assert result["discovered_repos"] == three_repos
        assert result["completed_steps"] == {AgentStep.DISCOVERY}
        assert "errors" not in result

    @pytest.mark.asyncio
    async def test_invalid_selection_records_error(self, fake_github):
        bad = make_repo("a/b").model_copy(update={"owner": ""})
        result = await repo_discovery_node({"selected_repos": [bad]}, fake_github)

        assert result["discovered_repos"] == []
        assert "discovery" in result["errors"]
        assert result["completed_steps"] == {AgentStep.DISCOVERY}

    @pytest.mark.asyncio
    async def test_resolves_default_branch_from_github(self, fake_github):
        fake_github.repo_metadata["acme/legacy"] = make_repo(
            "acme/legacy", id=42, default_branch="master", description="Old code", language="Python"
        )
        selected = RepoRef.from_reference("acme/legacy")
        result = await repo_discovery_node({"selected_repos": [selected]}, fake_github)

        repo = result["discovered_repos"][0]
        assert (repo.id, repo.default_branch, repo.description, repo.language) == (42, "master", "Old code", "Python")

    @pytest.mark.asyncio
    async def test_pinned_branch_wins(self, fake_github):
        fake_github.repo_metadata["acme/legacy"] = make_repo("acme/legacy", default_branch="master")
        selected = RepoRef.from_reference("https://github.com/acme/legacy/tree/release")
        result = await repo_discovery_node({"selected_repos": [selected]}, fake_github)

        assert result["discovered_repos"][0].default_branch == "release"

    @pytest.mark.asyncio
    async def test_missing_repository_is_per_repo_error(self, fake_github, three_repos):
        fake_github.missing_repos = {"acme/beta"}
        result = await repo_discovery_node({"selected_repos": three_repos}, fake_github)

        assert [r.key for r in result["discovered_repos"]] == ["acme/alpha", "acme/gamma"]
        assert result["errors"] == {"discovery_acme/beta": "Repository not found"}

    @pytest.mark.asyncio
    async def test_lookup_failure_is_per_repo_error(self, fake_github, three_repos):
        real_get_repo = fake_github.get_repo

        async def flaky_get_repo(owner, repo):
            if repo == "alpha":
                raise GitHubError("rate limited", 403)
            return await real_get_repo(owner, repo)

        fake_github.get_repo = flaky_get_repo
        result = await repo_discovery_node({"selected_repos": three_repos}, fake_github)

        assert [r.key for r in result["discovered_repos"]] == ["acme/beta", "acme/gamma"]
        assert result["errors"] == {"discovery_acme/alpha": "rate limited"}

    @pytest.mark.asyncio
    async def test_all_missing_records_stage_error(self, fake_github):
        fake_github.missing_repos = {"acme/typo"}
        result = await repo_discovery_node({"selected_repos": [make_repo("acme/typo")]}, fake_github)

        assert result["discovered_repos"] == []
        assert set(result["errors"]) == {"discovery", "discovery_acme/typo"}
        assert result["completed_steps"] == {AgentStep.DISCOVERY}

    @pytest.mark.asyncio
    async def test_lists_user_repos_without_selection(self, fake_github):
        fake_github.user_repos = [make_repo("me/one"), make_repo("me/two")]
        result = await repo_discovery_node({}, fake_github)
        assert [r.key for r in result["discovered_repos"]] == ["me/one", "me/two"]

    @pytest.mark.asyncio
    async def test_lookup_failure(self, fake_github):
        fake_github.list_user_repos = AsyncMock(side_effect=GitHubError("rate limited", 403))
        result = await repo_discovery_node({}, fake_github)

        assert result["errors"] == {"discovery": "rate limited"}
        assert result["completed_steps"] == {AgentStep.DISCOVERY}


class TestRepoAnalysis:
    """Tests for repo_analysis_node and its helpers."""

    @pytest.mark.asyncio
    async def test_uses_llm_json(self, mock_llm, fake_github):
        llm_returning(
            mock_llm,
            "```json\n"
            + json.dumps(
                {
                    "summary": "A demo service.",
                    "keyFeatures": ["REST API"],
                    "techStack": ["Docker"],
                    "complexity": "complex",
                }
            )
            + "\n```",
        )
        result = await repo_analysis_node({"discovered_repos": [make_repo("acme/alpha")]}, mock_llm, fake_github, "m")

        analysis = result["repo_analyses"]["acme/alpha"]
        assert analysis.summary == "A demo service."
        assert analysis.key_features == ["REST API"]
        assert analysis.tech_stack == ["Python", "FastAPI", "Docker"]
        assert analysis.complexity == "complex"
        assert analysis.structure.has_readme is True
        assert analysis.structure.has_package_manifest is True
        assert analysis.structure.frameworks == ["FastAPI"]

    @pytest.mark.asyncio
    async def test_unparsable_output_uses_first_line(self, mock_llm, fake_github):
        llm_returning(mock_llm, "Short summary line.\nMore prose.")
        result = await repo_analysis_node({"discovered_repos": [make_repo("acme/alpha")]}, mock_llm, fake_github, "m")
        assert result["repo_analyses"]["acme/alpha"].summary == "Short summary line."

    @pytest.mark.asyncio
    async def test_llm_failure_falls_back_to_description(self, mock_llm, fake_github):
        mock_llm.generate = AsyncMock(side_effect=RuntimeError("model unavailable"))
        repo = make_repo("acme/alpha", description="Alpha does things")
        result = await repo_analysis_node({"discovered_repos": [repo]}, mock_llm, fake_github, "m")

        analysis = result["repo_analyses"]["acme/alpha"]
        assert analysis.summary == "Alpha does things"
        assert analysis.key_features == ["FastAPI"]
        assert "errors" not in result

    @pytest.mark.asyncio
    async def test_selected_model_wins(self, mock_llm, fake_github):
        state = {"discovered_repos": [make_repo("acme/alpha")], "selected_model": "chosen"}
        await repo_analysis_node(state, mock_llm, fake_github, "default")
        assert mock_llm.generate.call_args.kwargs["model"] == "chosen"

    @pytest.mark.asyncio
    async def test_per_repo_isolation(self, mock_llm, fake_github, three_repos):
        fake_github.failing_repos.add("acme/beta")
        reported = []
        result = await repo_analysis_node(
            {"discovered_repos": three_repos}, mock_llm, fake_github, "m", reported.append
        )

        assert set(result["repo_analyses"]) == {"acme/alpha", "acme/gamma"}
        assert list(result["errors"]) == ["analysis_acme/beta"]
        assert result["completed_steps"] == {AgentStep.ANALYSIS}
        assert [p.current for p in reported] == [1, 2, 3]
        assert result["progress"].current == 3

    @pytest.mark.asyncio
    async def test_no_repos(self, mock_llm, fake_github):
        result = await repo_analysis_node({}, mock_llm, fake_github, "m")
        assert result["errors"] == {"analysis": "No repositories to analyze"}
        assert result["completed_steps"] == {AgentStep.ANALYSIS}

    @pytest.mark.asyncio
    async def test_indexes_code_when_store_given(self, mock_llm, fake_github):
        fake_github.files["app.py"] = "print('hi')"
        rag = MagicMock()
        rag.index_repository = AsyncMock(return_value=1)

        await repo_analysis_node(
            {"discovered_repos": [make_repo("acme/alpha")]}, mock_llm, fake_github, "m", rag=rag, rag_config=RAGConfig()
        )

        rag.index_repository.assert_awaited_once_with("acme/alpha", [("app.py", "print('hi')")])

    @pytest.mark.asyncio
    async def test_indexing_failure_is_tolerated(self, mock_llm, fake_github):
        rag = MagicMock()
        rag.index_repository = AsyncMock(side_effect=RuntimeError("chroma unavailable"))

        state = {"discovered_repos": [make_repo("acme/alpha")]}
        result = await repo_analysis_node(state, mock_llm, fake_github, "m", rag=rag)

        assert "acme/alpha" in result["repo_analyses"]
        assert "errors" not in result

    def test_manifest_dependencies(self):
        package_json = json.dumps({"dependencies": {"react": "^18"}, "devDependencies": {"vite": "^5"}})
        assert manifest_dependencies("package.json", package_json) == ["react", "vite"]
        assert manifest_dependencies("requirements.txt", "# deps\nflask==3.0\n-r base.txt\nrequests\n") == [
            "flask",
            "requests",
        ]
        assert manifest_dependencies("package.json", "{not json") == []

    def test_detect_frameworks(self):
        assert detect_frameworks(["react", "express", "React", "lodash"]) == ["React", "Express"]

    def test_estimate_complexity(self):
        small = [ContentItem(name="main.py", path="main.py", type="file")]
        assert estimate_complexity(small, has_manifest=False) == "simple"
        many = [ContentItem(name=f"f{i}.py", path=f"f{i}.py", type="file") for i in range(60)]
        assert estimate_complexity(many, has_manifest=False) == "complex"


class TestQualityAnalyzer:
    """Tests for quality_analyzer_node."""

    @pytest.mark.asyncio
    async def test_scores_and_badges(self, fake_github):
        result = await quality_analyzer_node({"repo_analyses": analyses_for("acme/alpha")}, fake_github)

        report = result["quality_reports"]["acme/alpha"]
        assert 0 < report.overall_score <= 100
        assert len(report.metrics) == 7
        assert "img.shields.io" in result["badges"]["acme/alpha"]
        assert result["completed_steps"] == {AgentStep.QUALITY}

    @pytest.mark.asyncio
    async def test_test_directory_counts(self, fake_github):
        result = await quality_analyzer_node({"repo_analyses": analyses_for("acme/alpha")}, fake_github)
        testing = {m.id: m.score for m in result["quality_reports"]["acme/alpha"].metrics}["testing"]
        assert testing >= 40

    @pytest.mark.asyncio
    async def test_per_repo_isolation(self, fake_github):
        fake_github.failing_repos.add("acme/beta")
        result = await quality_analyzer_node(
            {"repo_analyses": analyses_for("acme/alpha", "acme/beta", "acme/gamma")}, fake_github
        )
        assert set(result["quality_reports"]) == {"acme/alpha", "acme/gamma"}
        assert list(result["errors"]) == ["quality_acme/beta"]

    @pytest.mark.asyncio
    async def test_no_analyses_still_completes(self, fake_github):
        result = await quality_analyzer_node({}, fake_github)
        assert result["quality_reports"] == {}
        assert result["completed_steps"] == {AgentStep.QUALITY}


class TestRefactorProposal:
    """Tests for refactor_proposal_node."""

    @pytest.mark.asyncio
    async def test_uses_llm_proposal(self, mock_llm, fake_github):
        payload = {
            "highLevelSummary": "Group handlers",
            "recommendedStructure": [{"folder": "src/handlers", "description": "HTTP handlers"}],
            "moves": [{"fromPath": "app.py", "toPath": "src/app.py", "reason": "keep root clean"}],
            "warnings": ["Update imports"],
        }
        llm_returning(mock_llm, f"Here you go:\n{json.dumps(payload)}\nThanks")
        result = await refactor_proposal_node(
            {"repo_analyses": analyses_for("acme/alpha")}, mock_llm, fake_github, "m"
        )

        proposal = result["refactor_proposals"]["acme/alpha"]
        assert proposal.high_level_summary == "Group handlers"
        assert proposal.moves[0].to_path == "src/app.py"
        assert proposal.warnings == ["Update imports"]

    @pytest.mark.asyncio
    async def test_unparsable_uses_rules(self, mock_llm):
        github = FakeGitHub()
        github.trees["acme/flat"] = {
            "": [ContentItem(name=f"m{i}.py", path=f"m{i}.py", type="file") for i in range(7)]
        }
        result = await refactor_proposal_node(
            {"repo_analyses": analyses_for("acme/flat")}, mock_llm, github, "m"
        )
        proposal = result["refactor_proposals"]["acme/flat"]
        assert len(proposal.moves) == 7
        assert proposal.recommended_structure[0].folder == "src"

    @pytest.mark.asyncio
    async def test_subdirectory_failure_is_tolerated(self, mock_llm, fake_github):
        original = fake_github.list_contents

        async def flaky(owner, repo, path="", branch="main"):
            if path == "src":
                raise GitHubError("boom", 500)
            return await original(owner, repo, path, branch)

        fake_github.list_contents = flaky
        result = await refactor_proposal_node(
            {"repo_analyses": analyses_for("acme/alpha")}, mock_llm, fake_github, "m"
        )
        assert "acme/alpha" in result["refactor_proposals"]
        assert "errors" not in result

    @pytest.mark.asyncio
    async def test_root_failure_is_per_repo_error(self, mock_llm, fake_github):
        fake_github.failing_repos.add("acme/alpha")
        result = await refactor_proposal_node(
            {"repo_analyses": analyses_for("acme/alpha")}, mock_llm, fake_github, "m"
        )
        assert result["refactor_proposals"] == {}
        assert list(result["errors"]) == ["refactor_acme/alpha"]
        assert result["completed_steps"] == {AgentStep.REFACTOR}

    def test_proposal_from_json_caps_and_filters(self):
        moves = [{"fromPath": f"a{i}.py", "toPath": f"src/a{i}.py"} for i in range(20)]
        moves.append({"fromPath": "missing-target.py"})
        proposal = proposal_from_json("a/b", {"moves": moves, "warnings": "not a list"})
        assert len(proposal.moves) == 15
        assert proposal.warnings == []
        assert proposal.high_level_summary == "Repository structure refactoring proposal"


class TestDocsPlanner:
    """Tests for docs_planner_node."""

    @pytest.mark.asyncio
    async def test_sections_sorted_by_priority(self, mock_llm):
        payload = {
            "sections": [
                {"title": "Setup", "type": "setup", "priority": 3, "estimatedTokens": 200},
                {"title": "Overview", "type": "overview", "priority": 9},
                {"title": "API", "type": "api", "priority": 6},
            ],
            "style": "technical",
            "focusAreas": ["auth"],
        }
        llm_returning(mock_llm, f"```json\n{json.dumps(payload)}\n```")
        result = await docs_planner_node({"repo_analyses": analyses_for("acme/alpha")}, mock_llm, "m")

        plan = result["documentation_plans"]["acme/alpha"]
        assert [s.title for s in plan.sections] == ["Overview", "API", "Setup"]
        assert plan.style == "technical"
        assert plan.focus_areas == ["auth"]

    @pytest.mark.asyncio
    async def test_unparsable_uses_default_plan(self, mock_llm):
        result = await docs_planner_node({"repo_analyses": analyses_for("acme/alpha")}, mock_llm, "m")

        plan = result["documentation_plans"]["acme/alpha"]
        assert [s.title for s in plan.sections] == [title for title, *_ in DEFAULT_SECTIONS]
        assert plan.estimated_length == 3000

    @pytest.mark.asyncio
    async def test_llm_failure_uses_default_plan(self, mock_llm):
        mock_llm.generate = AsyncMock(side_effect=ValueError("bad request"))
        result = await docs_planner_node({"repo_analyses": analyses_for("acme/alpha")}, mock_llm, "m")
        assert len(result["documentation_plans"]["acme/alpha"].sections) == 5
        assert "errors" not in result

    @pytest.mark.asyncio
    async def test_no_analyses(self, mock_llm):
        result = await docs_planner_node({}, mock_llm, "m")
        assert "planning" in result["errors"]
        assert result["completed_steps"] == {AgentStep.PLANNING}

    def test_plan_from_json_coerces_invalid_values(self):
        analysis = make_analysis("a/b")
        plan = plan_from_json(
            analysis,
            {
                "sections": [{"title": "Odd", "type": "unknown", "priority": "high"}, {"type": "setup"}],
                "style": "casual",
                "estimatedLength": "long",
            },
        )
        assert len(plan.sections) == 1
        assert plan.sections[0].type == "overview"
        assert plan.sections[0].priority == 5
        assert plan.style == "comprehensive"
        assert plan.estimated_length == 5000
        assert plan.focus_areas == analysis.key_features


class TestDocsWriter:
    """Tests for docs_writer_node."""

    @pytest.fixture
    def planned_state(self):
        analyses = analyses_for("acme/alpha")
        return {
            "repo_analyses": analyses,
            "documentation_plans": {"acme/alpha": default_plan(analyses["acme/alpha"])},
            "badges": {"acme/alpha": "![Quality](https://img.shields.io/badge/quality-80-green)"},
        }

    @pytest.mark.asyncio
    async def test_defaults_to_markdown_readme(self, mock_llm, planned_state):
        result = await docs_writer_node(planned_state, mock_llm, "m")

        docs = result["generated_docs_full"]["acme/alpha"]
        assert [(s.type, s.format) for s in docs.sections] == [(DocSectionType.README, DocOutputFormat.MARKDOWN)]
        body = result["generated_docs"]["acme/alpha"]
        assert body.startswith("# README")
        assert "img.shields.io" in body
        assert LLM_TEXT in body
        assert result["completed_steps"] == {AgentStep.WRITING}

    @pytest.mark.asyncio
    async def test_every_format_and_section(self, mock_llm, planned_state):
        planned_state["selected_output_formats"] = list(DocOutputFormat)
        planned_state["selected_section_types"] = [DocSectionType.README, DocSectionType.API]
        planned_state["selected_language"] = DocLanguage.FR
        result = await docs_writer_node(planned_state, mock_llm, "m")

        sections = result["generated_docs_full"]["acme/alpha"].sections
        assert len(sections) == 10
        assert all(s.language == DocLanguage.FR for s in sections)
        api_openapi = next(s for s in sections if s.type == DocSectionType.API and s.format == DocOutputFormat.OPENAPI)
        assert "openapi: 3.0.3" in api_openapi.openapi_yaml

    @pytest.mark.asyncio
    async def test_llm_failure_uses_fallback_content(self, mock_llm, planned_state):
        mock_llm.generate = AsyncMock(side_effect=RuntimeError("down"))
        result = await docs_writer_node(planned_state, mock_llm, "m")

        body = result["generated_docs"]["acme/alpha"]
        assert "## alpha" in body
        assert "## Features" in body
        assert "errors" not in result

    @pytest.mark.asyncio
    async def test_failing_format_is_skipped(self, mock_llm, planned_state, monkeypatch):
        from gitscribe.infrastructure.agents import docs_writer

        original = docs_writer.render_section

        async def broken_html(output_format, *args, **kwargs):
            if output_format == DocOutputFormat.HTML:
                raise RuntimeError("renderer crashed")
            return await original(output_format, *args, **kwargs)

        monkeypatch.setattr(docs_writer, "render_section", broken_html)
        planned_state["selected_output_formats"] = [DocOutputFormat.HTML, DocOutputFormat.MARKDOWN]
        result = await docs_writer_node(planned_state, mock_llm, "m")

        sections = result["generated_docs_full"]["acme/alpha"].sections
        assert [s.format for s in sections] == [DocOutputFormat.MARKDOWN]

    @pytest.mark.asyncio
    async def test_all_formats_failing_emits_fallback_section(self, mock_llm, planned_state, monkeypatch):
        from gitscribe.infrastructure.agents import docs_writer

        monkeypatch.setattr(docs_writer, "render_section", AsyncMock(side_effect=RuntimeError("no")))
        result = await docs_writer_node(planned_state, mock_llm, "m")

        sections = result["generated_docs_full"]["acme/alpha"].sections
        assert len(sections) == 1
        assert sections[0].id == "alpha-fallback"
        assert sections[0].format == DocOutputFormat.MARKDOWN

    @pytest.mark.asyncio
    async def test_prompt_carries_retrieved_code(self, mock_llm, planned_state):
        rag = MagicMock()
        rag.search = AsyncMock(return_value=[Chunk(content="class User(Base): ...", metadata={"source": "models.py"})])

        await docs_writer_node(planned_state, mock_llm, "m", rag=rag, rag_config=RAGConfig(top_k=3))

        prompt = mock_llm.generate.call_args.kwargs["messages"][1].content
        assert "[Context 1] models.py:\nclass User(Base): ..." in prompt
        assert "No repository code is available" not in prompt
        assert all(call.args[1:] == ("acme/alpha", 3) for call in rag.search.await_args_list)

    @pytest.mark.asyncio
    async def test_failed_retrieval_writes_without_code(self, mock_llm, planned_state):
        rag = MagicMock()
        rag.search = AsyncMock(side_effect=RuntimeError("store unavailable"))

        result = await docs_writer_node(planned_state, mock_llm, "m", rag=rag)

        prompt = mock_llm.generate.call_args.kwargs["messages"][1].content
        assert "No repository code is available" in prompt
        assert LLM_TEXT in result["generated_docs"]["acme/alpha"]
        assert "errors" not in result

    @pytest.mark.asyncio
    async def test_no_plans(self, mock_llm):
        result = await docs_writer_node({}, mock_llm, "m")
        assert "writing" in result["errors"]
        assert result["completed_steps"] == {AgentStep.WRITING}

    def test_first_markdown_prefers_markdown(self):
        docs = GeneratedDocs(
            repo_name="b",
            owner="a",
            sections=[
                DocSection(id="1", type=DocSectionType.API, format=DocOutputFormat.OPENAPI, title="API", openapi_yaml="x"),
                DocSection(id="2", type=DocSectionType.README, format=DocOutputFormat.MARKDOWN, title="R", markdown="md"),
            ],
        )
        assert first_markdown(docs) == "md"


def _docs(*sections: tuple[DocSectionType, DocOutputFormat]) -> GeneratedDocs:
    return GeneratedDocs(
        repo_name="alpha",
        owner="acme",
        sections=[
            DocSection(
                id=f"{t.value}-{f.value}",
                type=t,
                format=f,
                title=t.value,
                markdown=None if f == DocOutputFormat.OPENAPI else "body",
                openapi_yaml="openapi: 3.0.3" if f == DocOutputFormat.OPENAPI else None,
            )
            for t, f in sections
        ],
    )


class TestGitOps:
    """Tests for git_ops_node."""

    @pytest.mark.parametrize(
        "section_type,output_format,path",
        [
            (DocSectionType.README, DocOutputFormat.MARKDOWN, "docs/readme.md"),
            (DocSectionType.ARCHITECTURE, DocOutputFormat.MARKDOWN, "docs/architecture.md"),
            (DocSectionType.ARCHITECTURE, DocOutputFormat.MARKDOWN_MERMAID, "docs/architecture.mermaid.md"),
            (DocSectionType.COMPONENTS, DocOutputFormat.MDX, "docs/components.mdx"),
            (DocSectionType.TESTING_CI, DocOutputFormat.HTML, "docs/testing_ci.html"),
            (DocSectionType.API, DocOutputFormat.OPENAPI, "docs/api/api.openapi.yaml"),
        ],
    )
    def test_commit_path(self, section_type, output_format, path):
        section = DocSection(id="x", type=section_type, format=output_format, title="t")
        assert commit_path(section) == path

    def test_commit_message(self):
        section = DocSection(id="x", type=DocSectionType.README, format=DocOutputFormat.MDX, title="t")
        assert commit_message(section) == "docs: Auto-generated README (mdx) documentation"

    @pytest.mark.asyncio
    async def test_skipped_when_not_requested(self, fake_github):
        state = {"generated_docs_full": {"acme/alpha": _docs((DocSectionType.README, DocOutputFormat.MARKDOWN))}}
        result = await git_ops_node(state, fake_github)

        assert result["commits"] == {}
        assert result["completed_steps"] == {AgentStep.GITOPS}
        assert fake_github.commits == []

    @pytest.mark.asyncio
    async def test_requires_token(self):
        state = {
            "commit_changes": True,
            "generated_docs_full": {"acme/alpha": _docs((DocSectionType.README, DocOutputFormat.MARKDOWN))},
        }
        result = await git_ops_node(state, FakeGitHub(authenticated=False))
        assert result["errors"] == {"gitops": "GitHub token required for Git operations"}

    @pytest.mark.asyncio
    async def test_commits_each_section(self, fake_github):
        state = {
            "commit_changes": True,
            "commit_branch": "docs-update",
            "discovered_repos": [make_repo("acme/alpha")],
            "generated_docs_full": {
                "acme/alpha": _docs(
                    (DocSectionType.README, DocOutputFormat.MARKDOWN),
                    (DocSectionType.API, DocOutputFormat.OPENAPI),
                )
            },
        }
        result = await git_ops_node(state, fake_github)

        records = result["commits"]["acme/alpha"]
        assert [r.path for r in records] == ["docs/readme.md", "docs/api/api.openapi.yaml"]
        assert all(c["branch"] == "docs-update" for c in fake_github.commits)
        assert fake_github.commits[1]["content"] == "openapi: 3.0.3"

    @pytest.mark.asyncio
    async def test_per_file_failure(self, fake_github):
        fake_github.failing_paths.add("docs/readme.md")
        state = {
            "commit_changes": True,
            "generated_docs_full": {
                "acme/alpha": _docs(
                    (DocSectionType.README, DocOutputFormat.MARKDOWN),
                    (DocSectionType.API, DocOutputFormat.MARKDOWN),
                )
            },
        }
        result = await git_ops_node(state, fake_github)

        assert list(result["errors"]) == ["gitops_acme/alpha_docs/readme.md"]
        assert [r.path for r in result["commits"]["acme/alpha"]] == ["docs/api.md"]

    @pytest.mark.asyncio
    async def test_markdown_and_mermaid_do_not_overwrite(self, fake_github):
        state = {
            "commit_changes": True,
            "generated_docs_full": {
                "acme/alpha": _docs(
                    (DocSectionType.ARCHITECTURE, DocOutputFormat.MARKDOWN),
                    (DocSectionType.ARCHITECTURE, DocOutputFormat.MARKDOWN_MERMAID),
                )
            },
        }
        result = await git_ops_node(state, fake_github)

        assert [c["path"] for c in fake_github.commits] == ["docs/architecture.md", "docs/architecture.mermaid.md"]
        assert len(result["commits"]["acme/alpha"]) == 2
