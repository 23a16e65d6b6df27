"""
Populate the catalog with sample categories and posts.
"""
from django.core.management.base import BaseCommand

from catalog_engine.models import Category, Post
from catalog_engine.repository import CatalogRepository

SAMPLE_CATEGORIES = ["プログラミング", "技術", "デザイン"]

SAMPLE_POSTS = [
    {
        "title": "Next.jsの基礎",
        "content": (
            "Next.jsは、Reactベースのフルスタックフレームワークです。\n\n"
            "サーバーサイドレンダリング（SSR）やスタティックサイトジェネレーション（SSG）を"
            "サポートし、高速なWebアプリケーションを構築できます。"
        ),
        "categories": ["プログラミング", "技術"],
    },
    {
        "title": "モダンなUIデザインのトレンド",
        "content": (
            "UIデザインでは、ニューモーフィズム、ダークモード、"
            "マイクロインタラクション、3Dエレメント、グラデーションが注目されています。"
        ),
        "categories": ["デザイン"],
    },
    {
        "title": "TypeScriptとPrismaの組み合わせ",
        "content": (
            "TypeScriptとPrismaを組み合わせることで、"
            "型安全なデータベース操作が可能になります。"
        ),
        "categories": ["プログラミング", "技術"],
    },
]


class Command(BaseCommand):
    help = "Create sample categories and posts. Existing names and titles are reused."

    def add_arguments(self, parser):
        parser.add_argument(
            "--database",
            default=None,
            help="Database alias to seed (defaults to the catalog's alias).",
        )

    def handle(self, *args, **options):
        repository = CatalogRepository(using=options["database"])

        categories = {}
        for name in SAMPLE_CATEGORIES:
            existing = Category.objects.using(repository.using).filter(name=name).first()
            if existing is None:
                existing = repository.create_category(name)
                self.stdout.write(f"Created category {name}")
            categories[name] = existing.pk

        for sample in SAMPLE_POSTS:
            if Post.objects.using(repository.using).filter(title=sample["title"]).exists():
                continue
            post = repository.create_post(
                title=sample["title"],
                content=sample["content"],
                category_ids=[categories[name] for name in sample["categories"]],
            )
            self.stdout.write(f"Created post {post.title}")

        self.stdout.write(self.style.SUCCESS("Catalog seeded"))
