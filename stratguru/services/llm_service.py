# stratguru/services/llm_service.py
"""
Chat-completions client for the AI coaching features.

Any OpenAI-compatible endpoint works: OPENAI_BASE_URL points at the provider,
OPENAI_MODEL picks the model.
"""
import json
import re
from typing import Optional, List, Dict, Any

import httpx

from ..utils.config import get_setting
from ..utils.error_handler import ProviderError, UserFriendlyError
from ..utils.logger import log_structured

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

STATUS_MESSAGES = {
    401: "Invalid OpenAI API key. Please check your configuration.",
    402: "Payment required - please add credits to your AI provider account.",
    403: "API access denied - your API key may not have the required permissions.",
    429: "OpenAI API quota exceeded. Please check your billing or try again later.",
}

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def _api_key() -> str:
    key = get_setting("OPENAI_API_KEY")
    if not key:
        raise UserFriendlyError("OpenAI API key not configured. Please add OPENAI_API_KEY to config/.env", status_code=500)
    return key


def model_name() -> str:
    return get_setting("OPENAI_MODEL", DEFAULT_MODEL)


def chat_completion(
    messages: List[Dict[str, Any]],
    max_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
    timeout: float = 60.0,
) -> Dict[str, Any]:
    """
    Send one chat-completions request.

    Returns:
        {"content": str, "model": str, "usage": dict}

    Raises:
        ProviderError on a non-2xx response or a response without choices
    """
    body: Dict[str, Any] = {"model": model_name(), "messages": messages}
    if max_tokens is not None:
        body["max_tokens"] = max_tokens
    if temperature is not None:
        body["temperature"] = temperature

    base_url = get_setting("OPENAI_BASE_URL", DEFAULT_BASE_URL).rstrip("/")
    headers = {"Authorization": f"Bearer {_api_key()}", "Content-Type": "application/json"}
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(f"{base_url}/chat/completions", json=body, headers=headers)
    except httpx.HTTPError as e:
        log_structured("ai_provider_unreachable", {"error": str(e)}, level="ERROR")
        raise ProviderError("OpenAI", 502, f"Could not reach AI provider: {e}")

    if response.status_code >= 400:
        try:
            error_body = response.json()
        except ValueError:
            error_body = {"raw": response.text}
        log_structured("ai_provider_error", {"status": response.status_code, "body": error_body}, level="ERROR")
        message = STATUS_MESSAGES.get(response.status_code, f"OpenAI API error: {response.status_code}")
        raise ProviderError("OpenAI", response.status_code, message, details=error_body)

    data = response.json()
    choices = data.get("choices") or []
    if not choices or not choices[0].get("message"):
        raise ProviderError("OpenAI", 502, "Invalid response from OpenAI API")
    return {
        "content": choices[0]["message"].get("content") or "",
        "model": data.get("model", body["model"]),
        "usage": data.get("usage"),
    }


def parse_json_content(text: str) -> Dict[str, Any]:
    """Parse model output as JSON, unwrapping a ```json fenced block if present."""
    match = _FENCED_JSON.search(text or "")
    candidate = (match.group(1) if match else text or "").strip()
    parsed = json.loads(candidate)
    if not isinstance(parsed, dict):
        raise ValueError("Expected a JSON object")
    return parsed


# ---------- Prompts ----------
ANALYSIS_SYSTEM_PROMPT = """You are an expert trading coach and analyst. Analyze the provided trading data and give actionable insights. Focus on:
1. Performance strengths and weaknesses
2. Risk management assessment
3. Trading patterns and behavior
4. Specific actionable recommendations
5. Areas for improvement

Keep your analysis professional, encouraging, and actionable. Use markdown formatting for better readability."""

MENTOR_SYSTEM_PROMPT = """You are an expert trading mentor and coach. Your role is to provide supportive, professional, and motivational guidance to help traders improve their performance.

Analyze the provided trading data and respond with a structured mentor-style response in the following JSON format:

{
  "summary": "A 2-3 sentence overall performance summary that's encouraging and balanced",
  "strengths": ["Array of 3-4 specific strengths the trader demonstrates"],
  "weaknesses": ["Array of 3-4 areas that need improvement, phrased constructively"],
  "actionPlan": ["Array of 4-6 specific, actionable steps the trader can take to improve"]
}

Guidelines:
- Be supportive and motivational while being honest about areas for improvement
- Focus on specific, actionable advice rather than generic statements
- Frame weaknesses as opportunities for growth
- Make the action plan practical and achievable"""

COPRO_SYSTEM_PROMPT = "You are an expert trading analyst providing structured market analysis. Always respond with valid JSON only."

MENTOR_FALLBACK = {
    "summary": "Your trading performance shows both strengths and areas for improvement. "
               "Keep focusing on consistency and risk management.",
    "strengths": [
        "You're actively tracking your trades and seeking feedback",
        "You have experience across multiple trading pairs",
        "You're maintaining discipline in your trading approach",
    ],
    "weaknesses": [
        "Consider improving your risk-reward ratio consistency",
        "Work on optimizing your win rate through better entry timing",
        "Focus on developing a more systematic approach to trade management",
    ],
    "actionPlan": [
        "Review your most profitable trades to identify common patterns",
        "Set clear rules for position sizing and stick to them consistently",
        "Practice patience with trade entries and wait for high-probability setups",
        "Keep a detailed trading journal to track emotional state and market conditions",
        "Focus on one or two currency pairs to develop deeper expertise",
    ],
}


def _rr(value: Any) -> str:
    return f"1:{value:.2f}" if isinstance(value, (int, float)) and value else "N/A"


def _performance_block(summary: Dict[str, Any]) -> str:
    return "\n".join([
        f"- Total Trades: {summary['totalTrades']}",
        f"- Win Rate: {summary['winRate']}%",
        f"- Total P&L: ${summary['totalPnL']}",
        f"- Average Risk/Reward: 1:{summary['avgRiskReward']}",
        f"- Average Risk per Trade: {summary['avgRiskPercentage']}%",
        f"- Wins: {summary['wins']} | Losses: {summary['losses']}",
        f"- Trading Pairs: {', '.join(summary['pairs'])}",
        f"- Direction Split: {summary['directions']['long']} Long, {summary['directions']['short']} Short",
    ])


def build_analysis_messages(summary: Dict[str, Any]) -> List[Dict[str, Any]]:
    recent = "\n".join(
        f"- {t['pair']} {t['direction']} -> {t['result']} (P&L: ${t['pnl'] if t['pnl'] is not None else 'N/A'}, "
        f"R:R: {_rr(t['rr'])}){' - ' + t['notes'] if t['notes'] else ''}"
        for t in summary["recentTrades"]
    )
    user = (
        "Please analyze my trading performance:\n\n"
        f"**Trading Summary:**\n{_performance_block(summary)}\n\n"
        f"**Recent Trades:**\n{recent}\n\n"
        "Provide a comprehensive analysis with specific recommendations for improvement."
    )
    return [
        {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


def build_mentor_messages(summary: Dict[str, Any]) -> List[Dict[str, Any]]:
    sessions = "\n".join(
        f"- {s['session']} Session: {s['winRate']}% win rate ({s['trades']} trades)"
        for s in summary["sessionPerformance"]
    )
    recent = "\n".join(
        f"- {t['pair']} {t['direction']} -> {t['result']} (P&L: ${t['pnl'] if t['pnl'] is not None else 'N/A'}, "
        f"R:R: {_rr(t['rr'])}, Risk: {t['risk_pct'] if t['risk_pct'] is not None else 'N/A'}%)"
        for t in summary["recentTrades"][:5]
    )
    user = (
        "Please analyze my trading performance and provide mentorship guidance:\n\n"
        f"**Trading Performance Data:**\n{_performance_block(summary)}\n\n"
        f"**Session Performance:**\n{sessions}\n\n"
        f"**Recent Trades Sample:**\n{recent}\n\n"
        "Please provide your mentor analysis in the exact JSON format specified."
    )
    return [
        {"role": "system", "content": MENTOR_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


def build_copro_messages(screenshot_url: Optional[str], market_context: Optional[str]) -> List[Dict[str, Any]]:
    context = f"Market Context: {market_context}" if market_context else "Please analyze the chart screenshot provided."
    prompt = f"""You are an expert trading analyst. Analyze the following market data and provide a detailed trade analysis.
{context}

Please provide:
1. Price direction prediction (Bullish/Bearish/Neutral) with confidence percentage
2. Session volatility assessment (Low/Medium/High)
3. Any news threats or fundamental factors to consider
4. A complete trade setup with entry, take profit, stop loss and a risk:reward of at least 1:2
5. Your reasoning for the analysis

Respond ONLY with valid JSON in this exact format:
{{
  "priceDirection": "Bullish/Bearish/Neutral",
  "probability": 75,
  "volatility": "Medium",
  "newsThreats": ["threat1", "threat2"],
  "tradeSetup": {{"entry": "1.2345", "tp": "1.2545", "sl": "1.2245", "riskReward": "1:2"}},
  "reasoning": "detailed explanation"
}}"""
    content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
    if screenshot_url:
        content.append({"type": "image_url", "image_url": {"url": screenshot_url}})
    return [
        {"role": "system", "content": COPRO_SYSTEM_PROMPT},
        {"role": "user", "content": content},
    ]


def copro_fallback(raw_text: str) -> Dict[str, Any]:
    return {
        "priceDirection": "Neutral",
        "probability": 50,
        "volatility": "Medium",
        "newsThreats": ["Unable to fully parse analysis - please provide more context"],
        "tradeSetup": {"entry": "N/A", "tp": "N/A", "sl": "N/A", "riskReward": "N/A"},
        "reasoning": raw_text or "Failed to parse AI response. Please try again with more detailed context "
                                 "or a clearer chart image.",
    }
