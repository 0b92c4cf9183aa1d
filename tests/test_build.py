from pathlib import Path

import pytest

from inkwell.build import (
    DEFAULT_CONFIG,
    BuildResult,
    build_site,
    load_config,
    load_site,
)
from inkwell.errors import BuildError, ConfigError, EmptyCollectionError, TemplateError


def write_doc(content: Path, name: str, header: str, body: str = "Body.\n") -> Path:
    content.mkdir(parents=True, exist_ok=True)
    path = content / name
    path.write_text(f"+++\n{header}\n+++\n{body}", encoding="utf-8")
    return path


def create_project(tmp_path: Path, with_bad: bool = True) -> Path:
    project = tmp_path / "blog"
    content = project / "content"
    (project / "inkwell.yaml").parent.mkdir(parents=True, exist_ok=True)
    (project / "inkwell.yaml").write_text(
        "title: Python Notes\nurl: https://example.com\nworkers: 2\n", encoding="utf-8"
    )
    write_doc(
        content,
        "2024-09-21-gunicorn-timeouts.md",
        'title = "Gunicorn worker timeouts"\ndate = 2024-09-21\ntags = ["python", "wsgi"]',
    )
    write_doc(
        content,
        "2024-10-12-asgi.md",
        'title = "ASGI frameworks"\ndate = 2024-10-12\ntags = ["python"]',
    )
    write_doc(
        content / "deep",
        "metaclasses.md",
        'title = "Metaclasses"\ndate = 2024-11-20\ntags = ["python"]',
        body="```python\nclass Meta(type):\n    pass\n```\n",
    )
    write_doc(
        content,
        "wip.md",
        'title = "Type hints"\ndate = 2024-12-01\ndraft = true',
    )
    if with_bad:
        write_doc(content, "broken.md", 'title = "No date here"')
    return project


def snapshot(directory: Path) -> dict[str, bytes]:
    return {
        p.relative_to(directory).as_posix(): p.read_bytes()
        for p in sorted(directory.rglob("*"))
        if p.is_file()
    }


def test_load_config_defaults_and_overrides(tmp_path):
    assert load_config(tmp_path) == DEFAULT_CONFIG
    (tmp_path / "inkwell.yaml").write_text(
        "title: Blog\nstrict: true\nunknown_key: 1\nworkers: '3'\n", encoding="utf-8"
    )
    config = load_config(tmp_path)
    assert config["title"] == "Blog"
    assert config["strict"] is True
    assert config["workers"] == 3
    assert "unknown_key" not in config
    assert config["source_dir"] == "content"


@pytest.mark.parametrize(
    "text", ["- a\n- b\n", "title: [unclosed\n", "workers: many\n"]
)
def test_load_config_rejects_bad_files(tmp_path, text):
    (tmp_path / "inkwell.yaml").write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_lenient_build_writes_full_site(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project)

    assert isinstance(result, BuildResult)
    assert result.output_dir == project / "output"
    assert [d.identifier for d in result.documents] == [
        "metaclasses",
        "asgi",
        "gunicorn-timeouts",
    ]
    assert len(result.warnings) == 1
    assert result.warnings[0].path.name == "broken.md"
    assert not result.ok
    assert sorted(result.feeds) == ["rss.xml", "sitemap.xml"]

    files = set(snapshot(result.output_dir))
    assert files == {
        "index.html",
        "posts/metaclasses/index.html",
        "posts/asgi/index.html",
        "posts/gunicorn-timeouts/index.html",
        "tags/index.html",
        "tags/python/index.html",
        "tags/wsgi/index.html",
        "rss.xml",
        "sitemap.xml",
    }
    home = (result.output_dir / "index.html").read_text(encoding="utf-8")
    assert home.index("Metaclasses") < home.index("ASGI frameworks") < home.index("Gunicorn")
    assert "Type hints" not in home
    # no staging or backup directories are left behind
    assert sorted(p.name for p in project.iterdir()) == ["content", "inkwell.yaml", "output"]


def test_drafts_can_be_included(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project, include_drafts=True)
    assert result.documents[0].identifier == "wip"
    assert (result.output_dir / "posts" / "wip" / "index.html").exists()


def test_rebuild_is_byte_identical(tmp_path):
    project = create_project(tmp_path)
    first = snapshot(build_site(project).output_dir)
    second = snapshot(build_site(project).output_dir)
    assert first == second


def test_rebuild_removes_stale_pages(tmp_path):
    project = create_project(tmp_path)
    build_site(project)
    (project / "content" / "2024-10-12-asgi.md").unlink()
    result = build_site(project)
    assert not (result.output_dir / "posts" / "asgi").exists()


def test_strict_build_fails_and_keeps_previous_output(tmp_path):
    project = create_project(tmp_path)
    before = snapshot(build_site(project).output_dir)

    with pytest.raises(BuildError) as exc_info:
        build_site(project, strict=True)
    assert exc_info.value.source_path.name == "broken.md"
    assert "date" in exc_info.value.message

    assert snapshot(project / "output") == before
    assert sorted(p.name for p in project.iterdir()) == ["content", "inkwell.yaml", "output"]


def test_strict_mode_from_config(tmp_path):
    project = create_project(tmp_path)
    (project / "inkwell.yaml").write_text("strict: true\n", encoding="utf-8")
    with pytest.raises(BuildError):
        build_site(project)
    assert not (project / "output").exists()
    assert build_site(project, strict=False).warnings


def test_render_failure_publishes_nothing(tmp_path, monkeypatch):
    project = create_project(tmp_path, with_bad=False)
    before = snapshot(build_site(project).output_dir)

    def boom(self, document):
        raise TemplateError(f"cannot render {document.identifier}")

    monkeypatch.setattr("inkwell.templates.TemplateEngine.render_document", boom)
    with pytest.raises(BuildError, match="cannot render"):
        build_site(project)
    assert snapshot(project / "output") == before


def test_empty_site_policy(tmp_path):
    project = tmp_path / "empty"
    (project / "content").mkdir(parents=True)
    result = build_site(project)
    assert result.documents == ()
    assert (result.output_dir / "index.html").exists()
    with pytest.raises(EmptyCollectionError):
        build_site(project, require_documents=True)


def test_missing_source_dir(tmp_path):
    with pytest.raises(BuildError, match="source directory not found"):
        build_site(tmp_path)


def test_colliding_tag_slugs_get_suffixes(tmp_path):
    project = create_project(tmp_path, with_bad=False)
    write_doc(
        project / "content",
        "pointers.md",
        'title = "Pointers"\ndate = 2024-01-01\ntags = ["c", "c++"]',
    )
    result = build_site(project)
    assert result.ok
    files = set(snapshot(result.output_dir))
    assert {"tags/c/index.html", "tags/c-2/index.html", "tags/python/index.html"} <= files
    sitemap = (result.output_dir / "sitemap.xml").read_text(encoding="utf-8")
    assert "<loc>https://example.com/tags/c-2/</loc>" in sitemap
    assert "<loc>https://example.com/tags/</loc>" in sitemap


def test_output_dir_override(tmp_path):
    project = create_project(tmp_path)
    target = tmp_path / "public" / "site"
    result = build_site(project, output_dir_override=target)
    assert result.output_dir == target
    assert (target / "index.html").exists()
    assert not (project / "output").exists()


def test_layout_override_from_project(tmp_path):
    project = create_project(tmp_path, with_bad=False)
    (project / "layouts").mkdir()
    (project / "layouts" / "tag.html.jinja").write_text(
        "{{ tag }}:{% for d in documents %}{{ d.identifier }},{% endfor %}",
        encoding="utf-8",
    )
    result = build_site(project)
    tag_page = (result.output_dir / "tags" / "python" / "index.html").read_text(encoding="utf-8")
    assert tag_page == "python:metaclasses,asgi,gunicorn-timeouts,"


def test_load_site_without_rendering(tmp_path):
    project = create_project(tmp_path)
    site = load_site(project)
    assert len(site.index) == 3
    assert len(site.warnings) == 1
    assert not (project / "output").exists()
