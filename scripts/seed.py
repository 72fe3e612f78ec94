"""Database seeder for local development."""
import argparse
import asyncio
import random
import sys
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy import insert

from blog import database
from blog.database import Base
from blog.models import (
    Article,
    ArticleStatus,
    Comment,
    CommentStatus,
    Series,
    Tag,
    User,
    UserRole,
    article_tags,
)
from blog.security import create_access_token
from blog.text import slugify

TAGS = ["python", "fastapi", "postgresql", "docker", "kubernetes", "react",
        "typescript", "devops", "testing", "performance", "security", "compilers"]

SERIES = ["Building a Blog Engine", "Database Internals", "Writing a Tiny Compiler"]

ADMIN_OPEN_ID = "seed-admin"


async def seed(small: bool = False):
    num_users = 5 if small else 30
    num_articles = 40 if small else 500
    max_comments_per_article = 3 if small else 8

    if database.engine is None or database.async_session is None:
        sys.exit("DATABASE_URL is not set; nothing to seed")

    print(f"Seeding: {num_users} users, {num_articles} articles")
    start = time.perf_counter()

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with database.async_session() as session:
        admin = User(open_id=ADMIN_OPEN_ID, name="Site Owner", role=UserRole.admin)
        session.add(admin)
        readers = [
            User(open_id=f"seed-user-{i:04d}", name=f"Reader {i}", email=f"reader{i}@example.com")
            for i in range(num_users)
        ]
        session.add_all(readers)

        tags = [Tag(slug=slugify(name), name=name) for name in TAGS]
        session.add_all(tags)

        series = [
            Series(slug=slugify(title), title=title, description=f"A multi-part series: {title}.")
            for title in SERIES
        ]
        session.add_all(series)
        await session.flush()
        print(f"  Created {len(readers) + 1} users, {len(tags)} tags, {len(series)} series")

        articles = []
        series_position = {s.id: 0 for s in series}
        for i in range(num_articles):
            status = random.choices(
                [ArticleStatus.published, ArticleStatus.draft, ArticleStatus.archived],
                weights=[80, 15, 5],
            )[0]
            published_at = None
            if status != ArticleStatus.draft:
                published_at = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 3 * 365))
            topic = random.choice(TAGS)
            article = Article(
                slug=f"article-{i}-{topic}",
                title=f"Article {i}: notes on {topic}",
                excerpt=f"What I learned working with {topic}.",
                content=f"This is the full content of article {i}. " * 20,
                status=status,
                published_at=published_at,
                weight=random.choice([0, 0, 0, 0, 1, 5, 10]),
                view_count=random.randint(0, 5000) if published_at else 0,
                author_id=admin.id,
            )
            if random.random() < 0.2:
                member_of = random.choice(series)
                series_position[member_of.id] += 1
                article.series_id = member_of.id
                article.series_order = series_position[member_of.id]
            session.add(article)
            articles.append(article)
        await session.flush()

        links = [
            {"article_id": article.id, "tag_id": tag.id}
            for article in articles
            for tag in random.sample(tags, k=random.randint(1, 3))
        ]
        await session.execute(insert(article_tags), links)
        print(f"  Created {len(articles)} articles with {len(links)} tag links")

        total_comments = 0
        for article in articles:
            if article.status != ArticleStatus.published:
                continue
            thread: list[Comment] = []
            for _ in range(random.randint(0, max_comments_per_article)):
                parent = random.choice(thread) if thread and random.random() < 0.4 else None
                comment = Comment(
                    article_id=article.id,
                    author_id=random.choice(readers).id,
                    parent_id=parent.id if parent else None,
                    content="Thanks, this helped me understand the topic.",
                    status=random.choices(
                        [CommentStatus.approved, CommentStatus.pending, CommentStatus.rejected],
                        weights=[75, 20, 5],
                    )[0],
                )
                session.add(comment)
                # Flush per comment so replies can point at it.
                await session.flush()
                thread.append(comment)
                total_comments += 1

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Comments: {total_comments}")
    print(f"\nAdmin token ({ADMIN_OPEN_ID}):\n  {create_access_token(ADMIN_OPEN_ID)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (40 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
