import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config.settings import settings
from schemas.bulletins import ReportCardDocument, SchoolBranding

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
PLACEHOLDER = "—"


def safe_path_part(value: str) -> str:
    """경로 구분자(/, \\) → - (파일명이 하위 디렉터리로 해석되지 않도록)"""
    return re.sub(r"[\\/]", "-", value)


def bulletin_filename(document: ReportCardDocument, ext: str = "pdf") -> str:
    """Bulletin_<이름(공백→_)>_<기간>.<ext>"""
    name = re.sub(r"\s+", "_", document.student_name.strip())
    return f"Bulletin_{safe_path_part(name)}_{safe_path_part(document.term)}.{ext}"


def default_branding() -> SchoolBranding:
    return SchoolBranding(
        school_name=settings.SCHOOL_NAME,
        address=settings.SCHOOL_ADDRESS,
        logo_url=settings.SCHOOL_LOGO_URL,
        signature_url=settings.DIRECTOR_SIGNATURE_URL,
    )


# ==========================================================
# [템플릿 필터]
# ==========================================================
def format_score(value: Optional[float]) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:.2f}"


def format_coefficient(value: Optional[float]) -> str:
    if value is None:
        return PLACEHOLDER
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def format_rank(rank: Optional[int]) -> str:
    """1 → 1er, 2 → 2ème"""
    if rank is None:
        return PLACEHOLDER
    return f"{rank}er" if rank == 1 else f"{rank}ème"


class PDFService:
    """
    성적표 렌더러 (Jinja2 HTML → WeasyPrint PDF)
    - 호출마다 새 HTML 문자열/PDF 바이트를 만들어 반환 (공유 상태 없음)
    - 로고/서명/교사명이 없으면 텍스트 자리표시로 대체
    """

    def __init__(self, template_dir: Optional[str] = None):
        # 템플릿 환경 설정
        path = Path(template_dir or settings.TEMPLATE_DIR)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        self.template_dir = path
        self.env = Environment(
            loader=FileSystemLoader(str(path)),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["score"] = format_score
        self.env.filters["coef"] = format_coefficient
        self.env.filters["rank"] = format_rank

    def _render_template(self, template_name: str, data: Dict[str, Any]) -> str:
        """템플릿을 렌더링하여 HTML 생성"""
        template = self.env.get_template(template_name)
        return template.render(**data)

    def _html_to_pdf(self, html_content: str) -> bytes:
        """HTML을 PDF로 변환"""
        from weasyprint import HTML

        return HTML(string=html_content, base_url=str(self.template_dir)).write_pdf()

    # ==========================================================
    # [HTML]
    # ==========================================================
    def _render_page(self, document: ReportCardDocument, branding: SchoolBranding) -> str:
        return self._render_template("_bulletin_page.html", {
            "doc": document,
            "branding": branding,
            "placeholder": PLACEHOLDER,
        })

    def render_class_html(
        self,
        documents: Sequence[ReportCardDocument],
        branding: Optional[SchoolBranding] = None,
        on_error: Optional[Callable[[ReportCardDocument, Exception], None]] = None,
    ) -> str:
        """
        여러 학생 성적표 → 한 HTML (학생당 1페이지, 입력 순서 유지)
        페이지는 학생별로 따로 렌더링. on_error 가 주어지면 실패한 학생 페이지만 빼고 계속
        """
        branding = branding or default_branding()
        pages = []
        for document in documents:
            try:
                pages.append(self._render_page(document, branding))
            except Exception as e:
                if on_error is None:
                    raise
                on_error(document, e)
        return self._render_template("bulletin.html", {"pages": pages})

    def render_bulletin_html(self, document: ReportCardDocument, branding: Optional[SchoolBranding] = None) -> str:
        return self.render_class_html([document], branding)

    # ==========================================================
    # [PDF]
    # ==========================================================
    def render_bulletin_pdf(self, document: ReportCardDocument, branding: Optional[SchoolBranding] = None) -> bytes:
        return self._html_to_pdf(self.render_bulletin_html(document, branding))

    def render_class_pdf(
        self,
        documents: Sequence[ReportCardDocument],
        branding: Optional[SchoolBranding] = None,
        on_error: Optional[Callable[[ReportCardDocument, Exception], None]] = None,
    ) -> bytes:
        return self._html_to_pdf(self.render_class_html(documents, branding, on_error))

    def iter_bulletin_pdfs(
        self,
        documents: Iterable[ReportCardDocument],
        branding: Optional[SchoolBranding] = None,
        on_error: Optional[Callable[[ReportCardDocument, Exception], None]] = None,
    ) -> Iterator[Tuple[str, bytes]]:
        """
        학생별 PDF를 하나씩 생성해 (파일명, 바이트)로 흘려보냄 (학급 전체를 메모리에 쌓지 않음)
        on_error 가 주어지면 실패한 학생은 콜백으로 넘기고 다음 학생을 계속 렌더링
        """
        branding = branding or default_branding()
        for document in documents:
            logger.debug("성적표 렌더링: student_id=%s", document.student_id)
            try:
                content = self.render_bulletin_pdf(document, branding)
            except Exception as e:
                if on_error is None:
                    raise
                on_error(document, e)
                continue
            yield bulletin_filename(document), content
