"""
OpenDART corp-code list provider.

Downloads corpCode.xml (a ZIP holding one XML file) and parses it into
CompanyRecord entries:
https://opendart.fss.or.kr/guide/detail.do?apiGrpCd=DS001&apiId=2019018
"""
from __future__ import annotations

import io
import json
import logging
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field

import requests
from tqdm import tqdm

from ..records import CompanyRecord

logger = logging.getLogger(__name__)

OPENDART_BASE_URL = "https://opendart.fss.or.kr"
CORP_CODE_PATH = "/api/corpCode.xml"


class OpenDartError(RuntimeError):
    def __init__(self, message: str, *, status: str | None = None):
        super().__init__(message)
        self.status = status


def _error_from_body(body: bytes) -> tuple[str | None, str | None]:
    """
    OpenDART reports API-level errors (bad key, quota) in a JSON or XML body:
    {"status":"010","message":"등록되지 않은 키입니다."}
    """
    text = body.decode("utf-8", errors="replace").strip()
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data.get("status"), data.get("message")
    except ValueError:
        pass
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return None, text[:200] or None
    return root.findtext("status"), root.findtext("message")


def parse_corp_code_xml(xml_bytes: bytes) -> list[CompanyRecord]:
    """
    Parse corpCode.xml content.

    Structure: <result><list><corp_code/><corp_name/><stock_code/><modify_date/></list>...</result>
    Blocks without corp_code or corp_name are skipped.
    """
    root = ET.fromstring(xml_bytes)
    out: list[CompanyRecord] = []
    for item in root.iter("list"):
        code = (item.findtext("corp_code") or "").strip()
        name = (item.findtext("corp_name") or "").strip()
        if not code or not name:
            continue
        out.append(
            CompanyRecord(
                registry_code=code,
                name=name,
                ticker=(item.findtext("stock_code") or "").strip() or None,
                last_modified=(item.findtext("modify_date") or "").strip(),
            )
        )
    return out


def extract_corp_code_xml(zip_bytes: bytes) -> bytes:
    with zipfile.ZipFile(io.BytesIO(zip_bytes)) as zf:
        xml_names = [n for n in zf.namelist() if n.lower().endswith(".xml")]
        if not xml_names:
            raise OpenDartError("No XML file found in corpCode.xml ZIP response")
        return zf.read(xml_names[0])


@dataclass(frozen=True)
class OpenDartCorpCodeProvider:
    """
    CompanySource implementation downloading the full corp-code list from OpenDART.
    """

    api_key: str
    base_url: str = OPENDART_BASE_URL
    timeout_seconds: float = 60.0
    show_progress: bool = False
    name: str = "opendart"
    _session: requests.Session = field(default_factory=requests.Session, init=False, repr=False, compare=False)

    def download_zip(self) -> bytes:
        url = f"{self.base_url}{CORP_CODE_PATH}"
        try:
            res = self._session.get(
                url,
                params={"crtfc_key": self.api_key},
                timeout=self.timeout_seconds,
                stream=True,
            )
        except requests.RequestException as e:
            raise OpenDartError(f"OpenDART corpCode.xml download failed: {e}") from e

        if res.status_code != 200:
            raise OpenDartError(f"OpenDART corpCode.xml download failed: {res.status_code} {res.reason}")

        total = int(res.headers.get("Content-Length") or 0) or None
        buf = io.BytesIO()
        with tqdm(total=total, desc="corpCode.xml", unit="B", unit_scale=True, disable=not self.show_progress) as bar:
            for chunk in res.iter_content(chunk_size=64 * 1024):
                if chunk:
                    buf.write(chunk)
                    bar.update(len(chunk))
        return buf.getvalue()

    def load_companies(self) -> list[CompanyRecord]:
        body = self.download_zip()
        if not zipfile.is_zipfile(io.BytesIO(body)):
            status, message = _error_from_body(body)
            raise OpenDartError(f"OpenDART API error: {status} - {message}", status=status)

        records = parse_corp_code_xml(extract_corp_code_xml(body))
        logger.info("Downloaded %d corp codes from OpenDART", len(records))
        return records
