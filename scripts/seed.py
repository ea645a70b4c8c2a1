"""Database seeder for local development and post listing benchmarks."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from sqlalchemy import text

from app.database import engine, async_session, Base
from app.models import SocialMediaComment, SocialMediaLike, SocialMediaPost, Task, User, new_id
from app.security import create_access_token

TOPICS = ["python", "fastapi", "postgresql", "docker", "kubernetes", "react",
          "typescript", "aws", "devops", "testing", "performance", "security"]

BATCH_SIZE = 500

# Same index as alembic revision 0001; create_all does not know about it.
POST_TEXT_FTS_INDEX = (
    "CREATE INDEX IF NOT EXISTS ix_social_media_posts_post_text_fts ON social_media_posts "
    "USING gin (to_tsvector('simple'::regconfig, post_text))"
)


def create_search_index(conn) -> bool:
    """Create the post_text full-text index on PostgreSQL; no-op elsewhere."""
    if conn.dialect.name != "postgresql":
        return False
    conn.execute(text(POST_TEXT_FTS_INDEX))
    return True


async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_tasks_per_user = 5 if small else 40
    num_posts = 100 if small else 10000
    max_comments_per_post = 2 if small else 5

    print(f"Seeding: {num_users} users, ~{num_users * num_tasks_per_user} tasks, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
        if await conn.run_sync(create_search_index):
            print("  Created full-text index on social_media_posts.post_text")

    async with async_session() as session:
        users = [
            User(id=new_id(), email=f"user_{i:04d}@example.com", name=f"User {i}")
            for i in range(num_users)
        ]
        session.add_all(users)
        await session.flush()
        print(f"  Created {len(users)} users")

        now = datetime.now(timezone.utc)
        for user in users:
            for i in range(num_tasks_per_user):
                created = now - timedelta(minutes=random.randint(0, 60 * 24 * 90))
                session.add(Task(
                    id=new_id(),
                    title=f"Review {random.choice(TOPICS)} notes #{i}",
                    description=f"Follow up on the {random.choice(TOPICS)} backlog.",
                    completed=random.random() < 0.3,
                    created_at=created,
                    updated_at=created,
                    user_id=user.id,
                ))
        await session.flush()
        print(f"  Created {num_users * num_tasks_per_user} tasks")

        total_comments = 0
        total_likes = 0
        for batch_start in range(0, num_posts, BATCH_SIZE):
            batch_end = min(batch_start + BATCH_SIZE, num_posts)
            side_rows = []
            for i in range(batch_start, batch_end):
                created = now - timedelta(minutes=random.randint(0, 60 * 24 * 365))
                post = SocialMediaPost(
                    post_id=new_id(),
                    post_text=f"Post {i}: lessons learned tuning {random.choice(TOPICS)} "
                              f"and {random.choice(TOPICS)} in production",
                    post_image=f"https://img.example.com/{i}.png" if random.random() < 0.5 else "",
                    created_at=created,
                    updated_at=created,
                    user_id=random.choice(users).id,
                )

                likers = random.sample(users, k=random.randint(0, min(5, num_users)))
                post.likes = len(likers)
                post.is_liked = post.likes > 0
                session.add(post)

                for liker in likers:
                    side_rows.append(SocialMediaLike(like_id=new_id(), post_id=post.post_id, user_id=liker.id))
                total_likes += len(likers)

                for _ in range(random.randint(0, max_comments_per_post)):
                    side_rows.append(SocialMediaComment(
                        comment_id=new_id(),
                        comment_text=f"Great write-up on {random.choice(TOPICS)}!",
                        post_id=post.post_id,
                        user_id=random.choice(users).id,
                    ))
                    total_comments += 1

            # Posts must exist before their comment and like rows.
            await session.flush()
            session.add_all(side_rows)
            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: posts created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")
    print(f"  Likes: {total_likes}")

    first = users[0]
    token = create_access_token(first.id, first.email, first.name)
    print(f"\nBearer token for {first.email}:\n{token}")


def main():
    parser = argparse.ArgumentParser(description="Seed the tasks & posts database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
