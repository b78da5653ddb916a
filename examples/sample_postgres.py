from dotenv import load_dotenv
import asyncio
import os

from sqlstitch import PostgresConnection, a, i, join, sql


async def main():
    # Load environment variables from .env file
    load_dotenv()

    db_host = os.getenv("POSTGRES_HOST", "127.0.0.1")
    db_port = os.getenv("POSTGRES_PORT", "5433")
    db_name = os.getenv("POSTGRES_DB", "sqlstitch")
    db_user = os.getenv("POSTGRES_USER", "postgres")
    db_password = os.getenv("POSTGRES_PASSWORD", "password")

    connection_string = f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

    async with PostgresConnection(connection_info=connection_string) as conn:
        users = i("sample_users")

        print("Creating table 'sample_users'...")
        await sql("CREATE TABLE IF NOT EXISTS {} (id SERIAL PRIMARY KEY, name TEXT NOT NULL, age INT)", users).query(conn)()

        print("Inserting sample data...")
        insert = sql(
            "INSERT INTO {} (name, age) VALUES ({})",
            users,
            join(", ", [a("name"), a("age")]),
        ).query(conn)
        for name, age in [("Alice", 30), ("Bob", 25), ("Charlie", 35)]:
            await insert({"name": name, "age": age})

        # A reusable filter written against its own argument shape
        older_than = sql("age > {}", a("min_age"))

        print("Querying users older than 28...")
        select = sql(
            "SELECT name, age FROM {} WHERE {} ORDER BY {}",
            users,
            older_than.build(lambda args: {"min_age": args["filters"]["age"]}),
            i("age"),
        ).query(conn, validate=lambda row: isinstance(row["age"], int))
        print(select.sql)
        result = await select({"filters": {"age": 28}})
        for row in result.rows:
            print(f"  {row['name']} ({row['age']})")

        print("Dropping table...")
        await sql("DROP TABLE {}", users).query(conn)()


if __name__ == "__main__":
    asyncio.run(main())
