import json

from travelmode.cli import main


def test_cli_radius_json(capsys):
    assert main(["radius", "--name", "Estadio Metropolitano", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["match"]["radius_m"] == 400
    assert data["match"]["rule_key"] == "stadium"
    assert data["thresholds"] == {"near": 200, "far": 300, "arrival": 400}


def test_cli_radius_text(capsys):
    assert main(["radius", "--name", "Unknown Spot"]) == 0
    out = capsys.readouterr().out
    assert "Arrival radius: 15m" in out
    assert "near=15m far=25m arrival=15m" in out


def test_cli_guidance(capsys):
    args = [
        "guidance",
        "--user-lat", "0", "--user-lng", "0",
        "--target-lat", "0", "--target-lng", "0.001",
        "--distance", "111.2", "--heading", "0",
    ]
    assert main(args) == 0
    out = capsys.readouterr().out
    assert "Turn 90° right - 111m" in out
    assert "Large turn required" in out


def test_cli_guidance_unavailable_for_negative_distance(capsys):
    args = [
        "guidance",
        "--user-lat", "0", "--user-lng", "0",
        "--target-lat", "0", "--target-lng", "0.001",
        "--distance", "-5", "--heading", "0", "--json",
    ]
    assert main(args) == 0
    assert json.loads(capsys.readouterr().out) == {"guidance": None}


def test_cli_heading(capsys):
    assert main(["heading", "--alpha", "90", "--json"]) == 0
    assert json.loads(capsys.readouterr().out) == {"heading_deg": 270, "cardinal_direction": "W"}


def test_cli_rules_lists_table_in_order(capsys):
    assert main(["rules"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert "airport" in lines[0]
    assert "default" in lines[-1]
