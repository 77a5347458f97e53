from dataclasses import dataclass

from src.cms.adapters.local_storage import LocalMediaStorage
from src.cms.adapters.seeder import DataSeeder
from src.cms.adapters.sqlite_repository import (
    SQLiteArticleRepository,
    SQLiteBehaviorLogRepository,
    SQLiteUserDirectory,
)
from src.cms.adapters.supabase_repository import (
    SupabaseArticleRepository,
    SupabaseBehaviorLogRepository,
    SupabaseUserDirectory,
    create_supabase_client,
)
from src.cms.adapters.supabase_storage import SupabaseMediaStorage
from src.cms.application.analytics import AnalyticsService
from src.cms.application.articles import ArticleService
from src.cms.application.media import MediaService
from src.cms.application.scheduled_publishing import ScheduledPublishingService
from src.cms.application.users import UserService
from src.cms.domain.ports import (
    IArticleRepository,
    IBehaviorLogRepository,
    IMediaStorage,
    IUserDirectory,
)
from src.config import AppConfig
from src.iqtest.adapters.question_bank import JsonQuestionBank
from src.iqtest.adapters.sqlite_repository import SQLiteResultRepository
from src.iqtest.adapters.supabase_repository import SupabaseResultRepository
from src.iqtest.application.leaderboard import LeaderboardService
from src.iqtest.application.service import TestService
from src.iqtest.domain.ports import IQuestionBank, IResultRepository
from src.shared.db_manager import DatabaseManager
from src.shared.telemetry import Telemetry


@dataclass
class Services:
    articles: ArticleService
    publishing: ScheduledPublishingService
    media: MediaService
    analytics: AnalyticsService
    users: UserService
    tests: TestService
    leaderboard: LeaderboardService


def wire_services(
    articles: IArticleRepository,
    logs: IBehaviorLogRepository,
    users: IUserDirectory,
    results: IResultRepository,
    storage: IMediaStorage,
    questions: IQuestionBank,
) -> Services:
    analytics = AnalyticsService(logs)
    return Services(
        articles=ArticleService(articles),
        publishing=ScheduledPublishingService(articles),
        media=MediaService(storage),
        analytics=analytics,
        users=UserService(users),
        tests=TestService(questions, results, analytics),
        leaderboard=LeaderboardService(results),
    )


def build_sqlite_services(
    db_path: str = AppConfig.SQLITE_DB_PATH,
    media_root: str = AppConfig.MEDIA_ROOT,
    questions_file: str = AppConfig.QUESTIONS_FILE,
    seed_file: str | None = AppConfig.SEED_FILE,
) -> Services:
    db = DatabaseManager(db_path)
    articles = SQLiteArticleRepository(db)
    users = SQLiteUserDirectory(db)
    results = SQLiteResultRepository(db)

    if seed_file:
        DataSeeder(articles, users, results).seed_if_empty(seed_file)

    return wire_services(
        articles=articles,
        logs=SQLiteBehaviorLogRepository(db),
        users=users,
        results=results,
        storage=LocalMediaStorage(media_root, AppConfig.MEDIA_PUBLIC_URL),
        questions=JsonQuestionBank(questions_file),
    )


def build_supabase_services(url: str, key: str) -> Services:
    client = create_supabase_client(url, key, Telemetry("Container"))
    return wire_services(
        articles=SupabaseArticleRepository(client),
        logs=SupabaseBehaviorLogRepository(client),
        users=SupabaseUserDirectory(client),
        results=SupabaseResultRepository(client),
        storage=SupabaseMediaStorage(client, AppConfig.MEDIA_BUCKET),
        questions=JsonQuestionBank(AppConfig.QUESTIONS_FILE),
    )


def build_services() -> Services:
    """Composition root shared by the API and the Streamlit site."""
    if AppConfig.USE_SQLITE:
        return build_sqlite_services()
    return build_supabase_services(AppConfig.SUPABASE_URL, AppConfig.SUPABASE_KEY)
