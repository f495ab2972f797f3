"""Database seeder: demo sites with channels, articles, dictionaries, promos and users."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from cms.database import engine, async_session, Base
from cms.enums import ArticleType, DictType, LogType, Module, StatusEnum, UserType
from cms.models import Article, Channel, DictEntry, Log, Promo, User

TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
          "react", "typescript", "aws", "devops", "testing", "performance"]
AUTHORS = ["Alice", "Bob", "Carol", "Dave"]
ORIGINS = ["Staff", "Wire", "Guest"]


async def seed_site(session, site_id: int, num_articles: int) -> int:
    # Two root channels, each with two children.
    channels = []
    for i, root_name in enumerate(["News", "Guides"]):
        root = Channel(name=root_name, sort=i, site_id=site_id)
        session.add(root)
        await session.flush()
        channels.append(root)
        for j in range(2):
            child = Channel(name=f"{root_name} {j + 1}", pid=root.id, sort=j, site_id=site_id)
            session.add(child)
            channels.append(child)
    await session.flush()

    for sort, name in enumerate(AUTHORS):
        session.add(DictEntry(name=name, type=DictType.AUTHOR.value, sort=sort, site_id=site_id))
    for sort, name in enumerate(ORIGINS):
        session.add(DictEntry(name=name, type=DictType.ORIGIN.value, sort=sort, site_id=site_id))
    for sort, name in enumerate(TOPICS):
        session.add(DictEntry(name=name, type=DictType.TAG.value, sort=sort, site_id=site_id))

    for user_type in UserType:
        session.add(User(
            username=f"{user_type.value.lower()}_{site_id}",
            nickname=f"{user_type.value.title()} of site {site_id}",
            type=user_type.value,
            site_id=site_id,
        ))

    now = datetime.now(timezone.utc)
    for i in range(3):
        session.add(Promo(
            title=f"Banner {i + 1}",
            position="home",
            start_time=now - timedelta(days=1),
            end_time=now + timedelta(days=30 * (i + 1)),
            sort=i,
            site_id=site_id,
        ))

    for i in range(20):
        session.add(Log(
            username=f"manage_{site_id}",
            type=random.choice(list(LogType)).value,
            module=random.choice(list(Module)).value,
            content=f"Seed action {i}",
            ip="127.0.0.1",
            site_id=site_id,
            created_at=now - timedelta(minutes=i),
        ))

    batch_size = 500
    for batch_start in range(0, num_articles, batch_size):
        for i in range(batch_start, min(batch_start + batch_size, num_articles)):
            topic = random.choice(TOPICS)
            created = now - timedelta(days=random.randint(0, 365))
            session.add(Article(
                title=f"Article {i}: Working with {topic}",
                channel_id=random.choice(channels).id,
                tags=",".join(random.sample(TOPICS, k=random.randint(1, 3))),
                description=f"A practical look at {topic} in production.",
                content=f"This is the full content of article {i}. " * 20,
                author=random.choice(AUTHORS),
                origin=random.choice(ORIGINS),
                type=random.choice(list(ArticleType)).value,
                status=random.choices(
                    [StatusEnum.NORMAL.value, StatusEnum.PENDING.value, StatusEnum.DELETE.value],
                    weights=[85, 10, 5],
                )[0],
                is_top=int(random.random() < 0.05),
                site_id=site_id,
                created_at=created,
                updated_at=created,
            ))
        await session.flush()
    return len(channels)


async def seed(sites: int = 2, small: bool = False):
    num_articles = 100 if small else 5000

    print(f"Seeding: {sites} site(s), {num_articles} articles each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        for site_id in range(1, sites + 1):
            num_channels = await seed_site(session, site_id, num_articles)
            print(f"  Site {site_id}: {num_channels} channels, {num_articles} articles")
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the CMS database")
    parser.add_argument("--sites", type=int, default=2, help="Number of sites to create")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 articles per site)")
    args = parser.parse_args()
    asyncio.run(seed(sites=args.sites, small=args.small))


if __name__ == "__main__":
    main()
