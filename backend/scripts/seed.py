#!/usr/bin/env python3
"""
Seed script to generate demo classes and tasks.

Usage:
    python -m scripts.seed [--classes 5] [--tasks 20] [--clear]

Options:
    --classes N  Number of classes to create (default: 5)
    --tasks M    Number of tasks per class (default: 20)
    --clear      Clear existing data before seeding
"""

import argparse
import asyncio
import random
import time
from datetime import date, timedelta
from typing import List

from sqlalchemy import delete, func
from sqlmodel import select

from app.config import get_settings
from app.database import Database
from app.models import Class, Task, Priority


SUBJECTS = ["Math", "Physics", "Chemistry", "History", "Literature", "Biology", "Art"]
KINDS = ["Homework", "Reading", "Lab report", "Essay", "Quiz prep", "Project"]


async def clear_data(database: Database):
    """Clear all existing data."""
    print("Clearing existing data...")
    async with database.session_maker() as session:
        await session.execute(delete(Task))
        await session.execute(delete(Class))
        await session.commit()
    print("Data cleared.")


def generate_classes(num_classes: int, user_id: str) -> List[Class]:
    return [
        Class(
            name=f"{random.choice(SUBJECTS)} {101 + i}",
            description=f"Demo class {i + 1}",
            user_id=user_id,
        )
        for i in range(num_classes)
    ]


def generate_tasks(class_item: Class, num_tasks: int) -> List[Task]:
    """
    Generate tasks for one class.

    - Due dates spread over the next 60 days, 10% without one
    - About a quarter already completed
    """
    today = date.today()
    tasks = []
    for i in range(num_tasks):
        has_due_date = random.random() >= 0.1
        tasks.append(Task(
            name=f"{random.choice(KINDS)} {i + 1}",
            description=f"{class_item.name}, task {i + 1}",
            class_id=class_item.id,
            estimated_time=random.choice([15, 30, 45, 60, 90, 120]),
            due_date=today + timedelta(days=random.randint(0, 60)) if has_due_date else None,
            completed=random.random() < 0.25,
            priority=random.choice(list(Priority)),
        ))
    return tasks


async def insert_batch(database: Database, classes: List[Class], tasks: List[Task]):
    """Insert classes and tasks in batches for performance."""
    async with database.session_maker() as session:
        batch_size = 100

        session.add_all(classes)
        await session.flush()

        print(f"Inserting {len(tasks)} tasks...")
        for i in range(0, len(tasks), batch_size):
            session.add_all(tasks[i:i + batch_size])
            await session.flush()

        await session.commit()


async def get_stats(database: Database):
    async with database.session_maker() as session:
        num_classes = (await session.execute(select(func.count()).select_from(Class))).scalar_one()
        num_tasks = (await session.execute(select(func.count()).select_from(Task))).scalar_one()
        num_done = (await session.execute(
            select(func.count()).select_from(Task).where(Task.completed == True)  # noqa: E712
        )).scalar_one()

    print("\n=== Statistics ===")
    print(f"Classes:   {num_classes}")
    print(f"Tasks:     {num_tasks}")
    print(f"Completed: {num_done}")


async def main():
    parser = argparse.ArgumentParser(description="Seed the database with demo classes and tasks")
    parser.add_argument("--classes", type=int, default=5, help="Number of classes to create")
    parser.add_argument("--tasks", type=int, default=20, help="Number of tasks per class")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")

    args = parser.parse_args()

    print("=== Taskr Seed Script ===")

    settings = get_settings()
    database = Database.from_settings(settings)
    try:
        await database.init_models()

        if args.clear:
            await clear_data(database)

        start_time = time.time()
        classes = generate_classes(args.classes, settings.default_user_id)
        tasks = [task for class_item in classes for task in generate_tasks(class_item, args.tasks)]
        await insert_batch(database, classes, tasks)
        print(f"Insert time: {time.time() - start_time:.2f}s")

        await get_stats(database)
    finally:
        await database.dispose()

    print("\n=== Seeding Complete ===")


if __name__ == "__main__":
    asyncio.run(main())
