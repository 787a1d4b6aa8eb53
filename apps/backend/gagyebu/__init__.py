"""가계부 백엔드: 가구 거래 기록과 중복 거래 감지."""
