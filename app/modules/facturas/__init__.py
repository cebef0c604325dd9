"""
Módulo de Facturas

Registro de facturas personales por usuario con ciclo de vida de status:

- pendiente (inicial) → pagada / vencida / anulada, sin restricciones de transición
- Consultas siempre limitadas al usuario dueño y a registros no eliminados
- Listado con filtros por año/mes de vencimiento, status, label y monto
- Estadísticas: total pagado, total pendiente, número de vencidas
- Tareas programadas (Celery beat):
    * promote_overdue: pendientes con vencimiento anterior a hoy → vencida
    * notify_due_today: aviso por correo de pendientes que vencen hoy
- Exportación a PDF
"""
