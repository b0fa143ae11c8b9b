from datetime import date

import pytest

from models.grade_entries import GradeEntry as GradeEntryModel
from scripts import generate_bulletins
from scripts import import_grade_entries as grade_import
from services.pdf_service import PDFService

from conftest import TestingSessionLocal, engine as test_engine


@pytest.fixture()
def script_session(db, monkeypatch):
    """스크립트가 테스트용 인메모리 DB 세션을 쓰도록 교체"""
    monkeypatch.setattr(generate_bulletins, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(grade_import, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(grade_import, "engine", test_engine)
    return db


def _args(out, term="T1"):
    return generate_bulletins.parse_args([
        "--class-id", "1",
        "--term", term,
        "--start", "2025-09-01",
        "--end", "2025-12-31",
        "--out", str(out),
    ])


# ==========================================================
# generate_bulletins
# ==========================================================
def test_generate_writes_one_file_per_student(script_session, seeded, fake_pdf, tmp_path, capsys):
    code = generate_bulletins.generate(_args(tmp_path, term="Trimestre 1 2025/2026"))

    assert code == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "Bulletin_Awa_Koné_Trimestre 1 2025-2026.pdf",
        "Bulletin_Bamba_Yao_Trimestre 1 2025-2026.pdf",
    ]
    assert (tmp_path / "Bulletin_Awa_Koné_Trimestre 1 2025-2026.pdf").read_bytes().startswith(b"%PDF")
    assert "성공 2건, 실패 0건" in capsys.readouterr().out


def test_generate_reports_render_failure_and_continues(script_session, seeded, tmp_path, monkeypatch, capsys):
    def render(self, html_content):
        if "Bamba Yao" in html_content:
            raise RuntimeError("font error")
        return b"%PDF-1.7\n"

    monkeypatch.setattr(PDFService, "_html_to_pdf", render)

    code = generate_bulletins.generate(_args(tmp_path))

    out = capsys.readouterr().out
    assert code == 1
    assert [p.name for p in tmp_path.iterdir()] == ["Bulletin_Awa_Koné_T1.pdf"]
    assert "❌ student_id=2 (Bamba Yao): font error" in out
    assert "성공 1건, 실패 1건" in out


def test_generate_reports_write_failure_and_continues(script_session, seeded, fake_pdf, tmp_path, capsys):
    # 같은 이름의 디렉터리가 있으면 파일 저장이 실패함
    (tmp_path / "Bulletin_Awa_Koné_T1.pdf").mkdir()

    code = generate_bulletins.generate(_args(tmp_path))

    out = capsys.readouterr().out
    assert code == 1
    assert (tmp_path / "Bulletin_Bamba_Yao_T1.pdf").is_file()
    assert "❌ student_id=1 (Awa Koné)" in out
    assert "성공 1건, 실패 1건" in out


# ==========================================================
# import_grade_entries
# ==========================================================
def test_import_grade_entries_from_csv(script_session, tmp_path, capsys):
    csv_path = tmp_path / "grade_entries.csv"
    csv_path.write_text(
        "student_id,subject,kind,date,score,coefficient\n"
        "1, Mathématiques ,Composition Mensuelle,2025-10-01,12.5,2\n"
        "2,Français,Devoir,2025-10-20,9,\n",
        encoding="utf-8",
    )

    assert grade_import.import_grade_entries(str(csv_path)) == 2

    rows = script_session.query(GradeEntryModel).order_by(GradeEntryModel.id).all()
    assert [(r.student_id, r.subject, r.kind, r.score, r.coefficient) for r in rows] == [
        (1, "Mathématiques", "Composition Mensuelle", 12.5, 2.0),
        (2, "Français", "Devoir", 9.0, 1.0),
    ]
    assert rows[0].date == date(2025, 10, 1)
    assert "(2건)" in capsys.readouterr().out


def test_import_rejects_unknown_assessment_kind(script_session, tmp_path):
    csv_path = tmp_path / "grade_entries.csv"
    csv_path.write_text(
        "student_id,subject,kind,date,score,coefficient\n"
        "1,Mathématiques,Devoir,2025-10-01,12,2\n"
        "1,Mathématiques,Examen,2025-10-02,14,2\n",
        encoding="utf-8",
    )

    with pytest.raises(ValueError):
        grade_import.import_grade_entries(str(csv_path))

    assert script_session.query(GradeEntryModel).count() == 0
