"""
Sales reports over a date range.

Orders in the range are loaded once (with their items) into pandas frames
and every figure of the report is derived from those frames.
"""
import calendar
import io
from datetime import date, datetime, time, timedelta

import pandas as pd
import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.dataframe import dataframe_to_rows
from django.http import HttpResponse
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import escape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from orders.models import Order, PaymentMethod

REPORT_TYPES = ('daily', 'monthly', 'yearly', 'custom')
PERIODS = ('day', 'month', 'year')
DEFAULT_PERIOD = {'daily': 'day', 'monthly': 'day', 'yearly': 'month', 'custom': 'day'}
PERIOD_FORMATS = {'day': '%Y-%m-%d', 'month': '%Y-%m', 'year': '%Y'}
POPULAR_ITEMS_LIMIT = 10

ORDER_COLUMNS = [
    'order_number', 'created_at', 'customer_name', 'table', 'guest_count', 'items',
    'subtotal', 'tax_amount', 'total_amount', 'payment_method', 'payment_status', 'hour',
]
ITEM_COLUMNS = ['dish', 'category', 'quantity', 'revenue']

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


# =============== DATE RANGES ===============

def date_range(report_type, day=None, month=None, year=None, start_date=None, end_date=None):
    """
    ``(first_day, last_day)`` covered by a report, both inclusive.

    daily needs ``day``; monthly needs ``month`` as ``YYYY-MM``; yearly needs
    ``year``; custom needs ``start_date`` and ``end_date``.
    """
    if report_type == 'daily':
        day = day or timezone.localdate()
        return day, day
    if report_type == 'monthly':
        if month:
            year_part, month_part = (int(part) for part in str(month).split('-'))
        else:
            today = timezone.localdate()
            year_part, month_part = today.year, today.month
        last = calendar.monthrange(year_part, month_part)[1]
        return date(year_part, month_part, 1), date(year_part, month_part, last)
    if report_type == 'yearly':
        year = int(year or timezone.localdate().year)
        return date(year, 1, 1), date(year, 12, 31)
    if report_type == 'custom':
        if not start_date or not end_date:
            raise ValueError("Custom reports need a start and an end date")
        if start_date > end_date:
            raise ValueError("Start date is after end date")
        return start_date, end_date
    raise ValueError(f"Unknown report type {report_type}")


def orders_between(first_day, last_day):
    start = timezone.make_aware(datetime.combine(first_day, time.min))
    end = timezone.make_aware(datetime.combine(last_day + timedelta(days=1), time.min))
    return (
        Order.objects.filter(created_at__gte=start, created_at__lt=end)
        .select_related('table__floor')
        .prefetch_related('items__menu_item__category')
        .order_by('-created_at')
    )


# =============== FRAMES ===============

def build_frames(orders):
    """One row per order and one row per line item"""
    order_rows = []
    item_rows = []
    for order in orders:
        created = timezone.localtime(order.created_at)
        items = list(order.items.all())
        order_rows.append({
            'order_number': order.order_number,
            'created_at': created.replace(tzinfo=None),
            'customer_name': order.customer_name,
            'table': f"{order.table.floor.floor_name} - Table {order.table.table_number}",
            'guest_count': order.guest_count,
            'items': ', '.join(f"{item.menu_item.name} ({item.quantity}x)" for item in items),
            'subtotal': float(order.subtotal),
            'tax_amount': float(order.tax_amount),
            'total_amount': float(order.total_amount),
            'payment_method': order.payment_method or '',
            'payment_status': order.payment_status,
            'hour': created.hour,
        })
        for item in items:
            item_rows.append({
                'dish': item.menu_item.name,
                'category': item.menu_item.category.name,
                'quantity': item.quantity,
                'revenue': float(item.total_price),
            })
    return (
        pd.DataFrame(order_rows, columns=ORDER_COLUMNS),
        pd.DataFrame(item_rows, columns=ITEM_COLUMNS),
    )


def _money(value):
    return round(float(value), 2)


# =============== AGGREGATES ===============

def summarize(orders_df):
    total_revenue = orders_df['total_amount'].sum()
    total_orders = len(orders_df)
    by_method = orders_df.groupby('payment_method')['total_amount'].sum()
    return {
        'total_revenue': _money(total_revenue),
        'total_orders': total_orders,
        'average_order_value': _money(total_revenue / total_orders) if total_orders else 0.0,
        'total_customers': int(orders_df['customer_name'].nunique()),
        'credit_amount': _money(by_method.get(PaymentMethod.CREDIT.value, 0)),
        'cash_amount': _money(by_method.get(PaymentMethod.CASH.value, 0)),
        'card_amount': _money(by_method.get(PaymentMethod.CARD.value, 0)),
        'upi_amount': _money(by_method.get(PaymentMethod.UPI.value, 0)),
    }


def by_period(orders_df, period='day'):
    """Revenue, order count and distinct customer names per day, month or year"""
    if period not in PERIODS:
        raise ValueError(f"Unknown period {period}")
    if orders_df.empty:
        return []
    keys = orders_df['created_at'].dt.strftime(PERIOD_FORMATS[period])
    grouped = orders_df.groupby(keys).agg(
        revenue=('total_amount', 'sum'),
        orders=('order_number', 'count'),
        customers=('customer_name', 'nunique'),
    ).sort_index()
    return [
        {
            'period': key,
            'revenue': _money(row.revenue),
            'orders': int(row.orders),
            'customers': int(row.customers),
        }
        for key, row in grouped.iterrows()
    ]


def payment_methods(orders_df):
    total_revenue = orders_df['total_amount'].sum()
    grouped = orders_df.groupby('payment_method')['total_amount'].agg(['count', 'sum'])
    breakdown = []
    for value, label in PaymentMethod.choices:
        count = int(grouped['count'].get(value, 0))
        total = _money(grouped['sum'].get(value, 0))
        breakdown.append({
            'method': value,
            'label': label,
            'count': count,
            'total': total,
            'percentage': round(float(total * 100 / total_revenue), 2) if total_revenue else 0.0,
        })
    return breakdown


def popular_items(items_df, limit=POPULAR_ITEMS_LIMIT):
    if items_df.empty:
        return []
    grouped = (
        items_df.groupby(['dish', 'category'], as_index=False)
        .agg(quantity=('quantity', 'sum'), revenue=('revenue', 'sum'))
        .sort_values(['quantity', 'dish'], ascending=[False, True])
        .head(limit)
    )
    return [
        {
            'name': row.dish,
            'category': row.category,
            'quantity': int(row.quantity),
            'revenue': _money(row.revenue),
        }
        for row in grouped.itertuples(index=False)
    ]


def hourly(orders_df):
    counts = orders_df['hour'].value_counts()
    return [{'hour': f"{hour}:00", 'orders': int(counts.get(hour, 0))} for hour in range(24)]


def build_report(report_type, first_day, last_day, period=None):
    """Everything the reports screen and the exports show for one range"""
    orders = list(orders_between(first_day, last_day))
    orders_df, items_df = build_frames(orders)
    period = period or DEFAULT_PERIOD.get(report_type, 'day')
    return {
        'report_type': report_type,
        'start_date': first_day.isoformat(),
        'end_date': last_day.isoformat(),
        'period': period,
        'summary': summarize(orders_df),
        'by_period': by_period(orders_df, period),
        'payment_methods': payment_methods(orders_df),
        'popular_items': popular_items(items_df),
        'hourly': hourly(orders_df),
        'orders': orders_df,
    }


def report_filename(report, extension):
    return f"{report['report_type']}-report-{report['start_date']}_{report['end_date']}.{extension}"


def summary_rows(report, currency='INR'):
    summary = report['summary']
    return [
        ('Total Revenue', f"{currency} {summary['total_revenue']:.2f}"),
        ('Total Orders', summary['total_orders']),
        ('Average Order Value', f"{currency} {summary['average_order_value']:.2f}"),
        ('Total Customers', summary['total_customers']),
        ('Cash Payments', f"{currency} {summary['cash_amount']:.2f}"),
        ('Card Payments', f"{currency} {summary['card_amount']:.2f}"),
        ('UPI Payments', f"{currency} {summary['upi_amount']:.2f}"),
        ('Credit Payments', f"{currency} {summary['credit_amount']:.2f}"),
    ]


# =============== EXPORTS ===============

def export_xlsx(report, restaurant):
    """Workbook with an "Orders Report" sheet and a "Summary" sheet"""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Orders Report"

    header_font = Font(bold=True, color='FFFFFF')
    header_fill = PatternFill(start_color='4F4F4F', end_color='4F4F4F', fill_type='solid')

    frame = report['orders'].drop(columns=['hour']).rename(columns={
        'order_number': 'Order Number',
        'created_at': 'Date & Time',
        'customer_name': 'Customer Name',
        'table': 'Table',
        'guest_count': 'Guests',
        'items': 'Items',
        'subtotal': 'Subtotal',
        'tax_amount': 'Tax Amount',
        'total_amount': 'Total Amount',
        'payment_method': 'Payment Method',
        'payment_status': 'Payment Status',
    })
    frame['Payment Method'] = frame['Payment Method'].replace('', 'Not Set')
    for row in dataframe_to_rows(frame, index=False, header=True):
        ws.append(row)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill

    summary_ws = wb.create_sheet("Summary")
    summary_ws.append(['Metric', 'Value'])
    for metric, value in summary_rows(report, restaurant.currency):
        summary_ws.append([metric, value])
    for cell in summary_ws[1]:
        cell.font = header_font
        cell.fill = header_fill

    # Auto-adjust column widths
    for sheet in (ws, summary_ws):
        for column in sheet.columns:
            width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
            sheet.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

    response = HttpResponse(content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{report_filename(report, "xlsx")}"'
    wb.save(response)
    return response


def export_html(report, restaurant):
    html = render_to_string('dashboard/report.html', {
        'restaurant': restaurant,
        'report': report,
        'summary_rows': summary_rows(report, restaurant.currency),
        'orders': report['orders'].to_dict('records'),
        'generated_at': timezone.localtime(),
    })
    response = HttpResponse(html, content_type='text/html; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{report_filename(report, "html")}"'
    return response


def export_pdf(report, restaurant):
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    story = []

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=18,
        spaceAfter=20,
        alignment=1  # Center alignment
    )
    story.append(Paragraph(f"{escape(restaurant.restaurant_name)} - Sales Report", title_style))
    story.append(Paragraph(f"Period: {report['start_date']} to {report['end_date']}", styles['Heading2']))
    story.append(Spacer(1, 12))

    summary_table = Table([['Metric', 'Value']] + [[metric, str(value)] for metric, value in summary_rows(report, restaurant.currency)])
    summary_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
    ]))
    story.append(summary_table)
    story.append(Spacer(1, 20))

    if report['popular_items']:
        story.append(Paragraph("Popular Items", styles['Heading3']))
        data = [['Dish', 'Category', 'Qty', 'Revenue']]
        for item in report['popular_items']:
            data.append([item['name'], item['category'], str(item['quantity']), f"{item['revenue']:.2f}"])
        items_table = Table(data)
        items_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ]))
        story.append(items_table)
        story.append(Spacer(1, 20))

    story.append(Paragraph("Orders", styles['Heading3']))
    data = [['Order', 'Date/Time', 'Customer', 'Table', 'Total', 'Payment']]
    for row in report['orders'].itertuples(index=False):
        data.append([
            row.order_number,
            row.created_at.strftime('%d/%m %H:%M'),
            row.customer_name[:20],
            row.table[:24],
            f"{row.total_amount:.2f}",
            row.payment_method or row.payment_status,
        ])
    data.append(['', '', '', 'Total', f"{report['summary']['total_revenue']:.2f}", ''])
    orders_table = Table(data, repeatRows=1)
    orders_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('BACKGROUND', (0, -1), (-1, -1), colors.lightgrey),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
    ]))
    story.append(orders_table)

    doc.build(story)
    buffer.seek(0)
    response = HttpResponse(buffer, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{report_filename(report, "pdf")}"'
    return response
