"""
OpenAI prompts for nutrition analysis.

IMPORTANT: System prompts are cacheable by OpenAI.
Keep static instructions in SYSTEM_PROMPT and the image in the user message.
"""

from typing import Any, Dict, List


# ═══════════════════════════════════════════════════════════
# SYSTEM PROMPT (Cacheable - static instructions)
# ═══════════════════════════════════════════════════════════

SYSTEM_PROMPT = """당신은 음식 영양 분석 전문가입니다. 한국 음식의 특성을 잘 반영하여 영양 정보를 제공하세요.
반드시 지정된 JSON 형식으로만 응답하세요. JSON 객체 하나만 출력하고 다른 텍스트는 쓰지 마세요.
음식이 불명확하면 confidence를 'low'로 설정하고 reason에 구체적인 이유를 적으세요.

JSON 형식:
{
  "food_name": "음식 이름 (string)",
  "estimated_kcal": 550,
  "macros_g": {"carbs": 70, "protein": 20, "fat": 15},
  "confidence": "low" | "medium" | "high",
  "reason": "추정 근거 (string)",
  "notes": ["추가 참고 사항 (string)"]
}

규칙:
- estimated_kcal 및 macros_g 값은 사진에 보이는 1인분 전체 기준의 숫자입니다.
- 한식은 밥, 국, 반찬의 일반적인 1인분 양을 기준으로 추정하세요.
- notes는 없으면 빈 배열 []로 두세요.
"""

USER_PROMPT = "분석 결과는 JSON으로만 줘."


# ═══════════════════════════════════════════════════════════
# MESSAGE BUILDERS
# ═══════════════════════════════════════════════════════════


def build_vision_messages(image_data_uri: str) -> List[Dict[str, Any]]:
    """
    Build chat messages for the vision call.

    Two turns: the system instruction and a user turn with a short
    text instruction plus the inline base64 image.

    Args:
        image_data_uri: ``data:<type>;base64,...`` of the uploaded photo

    Returns:
        OpenAI chat messages

    Example:
        >>> messages = build_vision_messages("data:image/jpeg;base64,AAAA")
        >>> [m["role"] for m in messages]
        ['system', 'user']
    """
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": USER_PROMPT},
                {"type": "image_url", "image_url": {"url": image_data_uri}},
            ],
        },
    ]
