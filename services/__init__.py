"""
SERVICES LAYER CONTRACT

Сервисы прикладного уровня: сценарии получения тендеров.

RULES:
- Оркестрирует компоненты инфраструктуры (запрос к ЕИС, загрузчик,
  распаковщик, разборщик XML), не дублируя их логику
- Ошибки возвращает как Result, не выбрасывает
- Ошибка одного архива или файла не прерывает обработку остальных
"""
