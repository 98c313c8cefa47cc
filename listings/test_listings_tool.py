"""
Tests for the command-line tool.
"""
import pandas as pd

from listings import listings_tool
from listings.database import db_connect, db_init, db_insert_listing, db_insert_user
from listings.models import Listing, User


def test_parse_args_defaults():
    args = listings_tool.parse_args(["--db", "x.db"])
    assert args.db == "x.db"
    assert args.radius_km == 50.0
    assert not args.backfill
    assert args.search == ""


def test_export_all_listings(tmp_path):
    db = str(tmp_path / "listings.db")
    conn = db_connect(db)
    db_init(conn)
    user = db_insert_user(conn, User(name="Amira", email="amira@example.com"))
    db_insert_listing(conn, Listing(user_id=user.id, name="Bike", price=10.0, location="Cairo, Egypt",
                                    latitude=30.0444, longitude=31.2357))
    conn.close()

    out = tmp_path / "all.csv"
    assert listings_tool.main(["--db", db, "--out", str(out), "--no-file-log"]) == 0

    df = pd.read_csv(out)
    assert list(df["name"]) == ["Bike"]
    assert df["latitude"].iloc[0] == 30.0444


def test_invalid_search_radius_exit_code(tmp_path):
    db = str(tmp_path / "listings.db")
    code = listings_tool.main(["--db", db, "--search", "Cairo", "--radius-km", "0", "--no-file-log"])
    assert code == 2
