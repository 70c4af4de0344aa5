from abc import ABC, abstractmethod


class NotificationProvider(ABC):
    """금리 알림 발송 채널을 위한 추상 기본 클래스입니다."""

    name = "base"

    @abstractmethod
    async def send_rate_alert_triggered(self, email: str, loan_type: str, current_rate: float,
                                        target_rate: float, alert_id: str) -> None:
        """
        금리 알림 도달 메시지를 전송합니다.

        Args:
            email (str): 수신자 이메일
            loan_type (str): 대출 유형
            current_rate (float): 알림을 발생시킨 현재 금리
            target_rate (float): 사용자가 설정한 목표 금리
            alert_id (str): 알림 ID

        Raises:
            NotificationDeliveryError: 전송에 실패한 경우
        """
        pass


def build_subject() -> str:
    return "Your rate alert was triggered"


def build_text_body(loan_type: str, current_rate: float, target_rate: float, alerts_url: str) -> str:
    return "\n".join([
        "Your rate alert just triggered.",
        "",
        f"Loan type: {loan_type}",
        f"Current rate: {current_rate:.2f}%",
        f"Target rate: {target_rate:.2f}%",
        "",
        f"View your alerts: {alerts_url}",
    ])
