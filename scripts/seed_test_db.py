#!/usr/bin/env python3
"""
Seed a MariaDB/MySQL database with the fixtures used by backend/tests/integration.
Usage:
    MARIADB_TEST_HOST=127.0.0.1 MARIADB_TEST_USER=root MARIADB_TEST_PASSWORD=secret \
        python scripts/seed_test_db.py
Creates (or recreates): database $MARIADB_TEST_DATABASE (default querygate_test_db)
"""
import asyncio
import os
import random

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import create_async_engine

TEST_DB = os.getenv("MARIADB_TEST_DATABASE", "querygate_test_db")
BULK_ROWS = 1500

DDL = [
    """
    CREATE TABLE test_users (
        id          INT AUTO_INCREMENT PRIMARY KEY,
        name        VARCHAR(100) NOT NULL COMMENT 'Display name',
        email       VARCHAR(255) NOT NULL,
        avatar      VARBINARY(16),
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE KEY uq_test_users_email (email),
        KEY idx_test_users_name_created (name, created_at)
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4""",
    """
    CREATE TABLE test_orders (
        id          INT AUTO_INCREMENT PRIMARY KEY,
        user_id     INT NOT NULL,
        status      ENUM('PENDING','SHIPPED','DELIVERED') NOT NULL DEFAULT 'PENDING',
        total       DECIMAL(10,2),
        CONSTRAINT fk_test_orders_user FOREIGN KEY (user_id)
            REFERENCES test_users(id) ON UPDATE CASCADE ON DELETE RESTRICT
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4""",
    """
    CREATE TABLE test_bulk (
        id          INT PRIMARY KEY,
        n           INT NOT NULL
    ) ENGINE=InnoDB""",
]

STATUSES = ['PENDING', 'SHIPPED', 'DELIVERED']


def _server_url() -> URL:
    return URL.create(
        "mysql+aiomysql",
        username=os.environ["MARIADB_TEST_USER"],
        password=os.environ["MARIADB_TEST_PASSWORD"],
        host=os.environ["MARIADB_TEST_HOST"],
        port=int(os.getenv("MARIADB_TEST_PORT", "3306")),
    )


async def seed():
    engine = create_async_engine(_server_url())
    async with engine.begin() as conn:
        await conn.execute(text(f"DROP DATABASE IF EXISTS `{TEST_DB}`"))
        await conn.execute(text(f"CREATE DATABASE `{TEST_DB}`"))
        await conn.execute(text(f"USE `{TEST_DB}`"))

        for stmt in DDL:
            await conn.execute(text(stmt))

        # test_users (20) with a binary avatar
        for i in range(1, 21):
            await conn.execute(
                text("INSERT INTO test_users(name, email, avatar) VALUES (:name, :email, :avatar)"),
                {"name": f"User {i}", "email": f"user{i}@example.com", "avatar": bytes([i, 0xAB, 0xFF])},
            )

        # test_orders (60)
        for _ in range(60):
            await conn.execute(
                text("INSERT INTO test_orders(user_id, status, total) VALUES (:user_id, :status, :total)"),
                {"user_id": random.randint(1, 20), "status": random.choice(STATUSES),
                 "total": round(random.uniform(5, 500), 2)},
            )

        # test_bulk, more rows than the default row limit
        await conn.execute(
            text("INSERT INTO test_bulk(id, n) VALUES (:id, :n)"),
            [{"id": i, "n": i * 10} for i in range(1, BULK_ROWS + 1)],
        )

    await engine.dispose()
    print(f"Test database seeded: {TEST_DB}")
    print("   Tables: test_users, test_orders, test_bulk")


if __name__ == "__main__":
    asyncio.run(seed())
