from src.cms.domain.models import ArticleDraft, ArticleStatus
from src.cms.domain.seo import (
    analyze_links,
    analyze_seo,
    make_excerpt,
    reading_time,
    seo_badge,
    word_count,
)
from src.cms.domain.slugs import generate_slug, remove_diacritics, unique_slug
from src.cms.domain.validation import validate_article_data
from src.shared.clock import utcnow


class TestSlugs:
    def test_vietnamese_title(self):
        assert generate_slug("Hướng dẫn React & Vue.js") == "huong-dan-react-vue-js"

    def test_d_with_stroke(self):
        assert remove_diacritics("Đường đi") == "Duong di"

    def test_collapses_separators(self):
        assert generate_slug("  IQ --- test__tips  ") == "iq-test-tips"

    def test_empty(self):
        assert generate_slug("") == ""

    def test_unique_slug_appends_counter(self):
        taken = {"iq-test", "iq-test-1"}
        assert unique_slug("iq-test", taken.__contains__) == "iq-test-2"
        assert unique_slug("eq-test", taken.__contains__) == "eq-test"


class TestSeo:
    def test_word_count_ignores_markup(self):
        assert word_count("<p>Hello <b>bright</b> world</p>") == 3

    def test_reading_time_rounds_up(self):
        assert reading_time("word " * 201) == 2
        assert reading_time("") == 0

    def test_excerpt_cuts_on_word_boundary(self):
        excerpt = make_excerpt("<p>" + "alpha beta " * 30 + "</p>", max_chars=20)
        assert excerpt == "alpha beta alpha..."

    def test_full_marks(self):
        # Arrange
        content = "memory " + "word " * 300
        meta = "m" * 130

        # Act
        analysis = analyze_seo(
            "Train your memory daily", content, meta, "train-memory", "memory"
        )

        # Assert
        assert analysis.score == 90
        assert analysis.issues == []
        assert analysis.badge == "good"
        assert analysis.reading_time == 2

    def test_missing_everything(self):
        analysis = analyze_seo("", "short")
        assert analysis.score == 0
        assert "Title is missing" in analysis.issues
        assert "Slug is missing" in analysis.issues
        assert analysis.badge == "poor"

    def test_badge_thresholds(self):
        assert seo_badge(80) == "good"
        assert seo_badge(60) == "fair"
        assert seo_badge(59) == "poor"

    def test_link_analysis(self):
        content = (
            '<a href="/iq-test">Take the test</a> and '
            '<a href="https://example.org/x">source</a>'
        )
        links = analyze_links(content, "iqsite.local")
        assert links.internal_links == [{"url": "/iq-test", "text": "Take the test"}]
        assert links.external_links[0]["domain"] == "example.org"
        assert links.total_links == 2

    def test_link_analysis_without_site_domain(self):
        content = '<a href="https://example.org/x">source</a>'

        links = analyze_links(content, "")

        assert links.internal_links == []
        assert links.external_links[0]["domain"] == "example.org"


class TestArticleValidation:
    def test_valid_draft(self):
        draft = ArticleDraft(title="Memory tips", content="Ten useful memory tips.")
        assert validate_article_data(draft) == []

    def test_required_fields_on_create(self):
        errors = validate_article_data(ArticleDraft())
        assert errors == ["Title is required", "Content is required"]

    def test_partial_allows_missing_fields(self):
        assert validate_article_data(ArticleDraft(title="New title"), partial=True) == []

    def test_partial_rejects_explicit_nulls(self):
        draft = ArticleDraft.model_validate({"title": None, "content": None})

        errors = validate_article_data(draft, partial=True)

        assert errors == ["Title is required", "Content is required"]

    def test_short_values(self):
        errors = validate_article_data(ArticleDraft(title="ab", content="tiny"))
        assert "Title must be at least 3 characters" in errors
        assert "Content must be at least 10 characters" in errors

    def test_scheduled_needs_date(self):
        draft = ArticleDraft(
            title="Later", content="Coming soon to the blog.", status=ArticleStatus.SCHEDULED
        )
        assert "Scheduled articles need a scheduled_at date" in validate_article_data(draft)

        draft.scheduled_at = utcnow()
        assert validate_article_data(draft) == []
