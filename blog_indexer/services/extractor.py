"""리치 텍스트 본문 평문 추출.

에디터가 저장한 구조화 문서(JSON 트리)에서 텍스트 노드만 문서 순서대로 이어 붙입니다.

문서 형태:
    {"root": {"type": "root", "children": [
        {"type": "paragraph", "children": [
            {"type": "text", "text": "Hello"},
            {"type": "text", "text": " world"}]}]}}

구분자 없이 이어 붙이므로 문단 경계의 공백은 원문 텍스트 노드에 있던 것만 남습니다.
"""

import json
from typing import Any

TEXT_NODE = "text"


def _walk(node: Any) -> str:
    """노드를 깊이 우선으로 순회하며 텍스트를 모읍니다.

    손상된 노드는 빈 문자열로 취급하고 순회를 계속합니다.
    """
    if not isinstance(node, dict):
        return ""
    if node.get("type") == TEXT_NODE and isinstance(node.get("text"), str):
        return node["text"]
    children = node.get("children")
    if isinstance(children, list):
        return "".join(_walk(child) for child in children)
    return ""


def extract(document: Any) -> str:
    """구조화 문서 또는 문자열에서 평문을 추출합니다.

    문자열은 JSON으로 파싱을 시도하고, 구조화 문서가 아니면 이미 평문으로 보고
    그대로 반환합니다. 예외를 발생시키지 않는 순수 함수입니다.

    Args:
        document: 구조화 문서(dict), JSON 문자열, 또는 평문.

    Returns:
        추출된 평문. 입력이 없으면 빈 문자열.
    """
    if not document:
        return ""

    if isinstance(document, str):
        try:
            parsed = json.loads(document)
        except ValueError:
            return document
        if not isinstance(parsed, dict):
            # "123", "\"text\"" 같은 JSON 스칼라는 평문으로 취급
            return document
        document = parsed

    if not isinstance(document, dict):
        return ""

    if document.get("root"):
        return _walk(document["root"])
    return _walk(document)


class ContentExtractor:
    """extract()를 주입 가능한 협력자로 감싼 클래스."""

    def extract(self, document: Any) -> str:
        return extract(document)
