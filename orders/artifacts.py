"""
Printable artifacts: QR codes, the table QR sheet, bills and kitchen tickets.
Nothing here is persisted; every call renders from the current rows.
"""
import io

import qrcode
from django.conf import settings
from django.template.loader import render_to_string
from django.utils.html import escape
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, Image

from .services import split_tax, upi_payment_uri


def qr_png(data, box_size=10, border=4):
    """PNG bytes of a QR code for ``data``"""
    qr = qrcode.QRCode(version=1, box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color='black', back_color='white')
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    buffer.seek(0)
    return buffer.getvalue()


def table_order_url(table):
    """Where a customer lands after scanning the table's QR code"""
    return f"{settings.PUBLIC_ORDER_BASE_URL.rstrip('/')}/order/{table.pk}"


def upi_qr_png(order, restaurant):
    return qr_png(upi_payment_uri(order.total_amount, restaurant.upi_id, currency=restaurant.currency))


def bill_context(order, restaurant):
    items = list(order.items.select_related('menu_item__category'))
    return {
        'restaurant': restaurant,
        'order': order,
        'table': order.table,
        'floor': order.table.floor,
        'items': items,
        'tax': split_tax(order.tax_amount, order.tax_rate),
        'printed_at': timezone.localtime(),
    }


def render_bill_html(order, restaurant):
    return render_to_string('orders/bill.html', bill_context(order, restaurant))


def render_kot_html(order, restaurant):
    context = bill_context(order, restaurant)
    context['waiter'] = order.waiter_name
    return render_to_string('orders/kot.html', context)


# =============== PDF ===============

def _title_style(styles):
    return ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=18,
        spaceAfter=12,
        alignment=1  # Center alignment
    )


def bill_pdf(order, restaurant):
    """PDF rendition of the customer bill"""
    context = bill_context(order, restaurant)
    tax = context['tax']
    currency = restaurant.currency

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    styles = getSampleStyleSheet()
    story = [
        Paragraph(escape(restaurant.restaurant_name), _title_style(styles)),
    ]
    if restaurant.address:
        story.append(Paragraph(escape(restaurant.address), styles['Normal']))
    story.append(Paragraph(
        f"Bill {order.order_number} | {escape(context['floor'].floor_name)} - Table {escape(context['table'].table_number)}",
        styles['Heading3']
    ))
    story.append(Paragraph(
        f"Customer: {escape(order.customer_name)} | Guests: {order.guest_count} | "
        f"{timezone.localtime(order.created_at).strftime('%d/%m/%Y %H:%M')}",
        styles['Normal']
    ))
    story.append(Spacer(1, 12))

    data = [['Item', 'Qty', 'Rate', 'Amount']]
    for item in context['items']:
        name = item.menu_item.name
        if item.modifiers:
            name = f"{name} ({item.modifiers})"
        data.append([name, str(item.quantity), f"{item.unit_price:.2f}", f"{item.total_price:.2f}"])
    data.append(['Subtotal', '', '', f"{order.subtotal:.2f}"])
    data.append([f"SGST @ {tax['sgst_rate']}%", '', '', f"{tax['sgst_amount']:.2f}"])
    data.append([f"CGST @ {tax['cgst_rate']}%", '', '', f"{tax['cgst_amount']:.2f}"])
    data.append([f"Total ({currency})", '', '', f"{order.total_amount:.2f}"])

    table = Table(data, colWidths=[90 * mm, 20 * mm, 30 * mm, 35 * mm])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (0, -4), (-1, -4), 1, colors.black),
        ('BACKGROUND', (0, -1), (-1, -1), colors.lightgrey),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -5), 0.5, colors.black),
    ]))
    story.append(table)
    story.append(Spacer(1, 12))

    status_line = f"Payment: {order.get_payment_status_display()}"
    if order.payment_method:
        status_line += f" ({order.get_payment_method_display()})"
    story.append(Paragraph(status_line, styles['Normal']))
    if order.room_number:
        story.append(Paragraph(
            f"Charged to room {escape(order.room_number)} - {escape(order.guest_name)}", styles['Normal']
        ))
    story.append(Paragraph("Thank you for dining with us!", styles['Italic']))

    doc.build(story)
    buffer.seek(0)
    return buffer.getvalue()


def qr_sheet_pdf(tables, restaurant):
    """Printable sheet with one QR code per table, three to a row"""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    styles = getSampleStyleSheet()
    story = [
        Paragraph(f"{escape(restaurant.restaurant_name)} - Table QR Codes", _title_style(styles)),
        Spacer(1, 12),
    ]

    cells = []
    for table in tables:
        png = qr_png(table_order_url(table), box_size=8, border=2)
        cells.append([
            Image(io.BytesIO(png), width=45 * mm, height=45 * mm),
            Paragraph(f"<b>Table {escape(table.table_number)}</b>", styles['Normal']),
            Paragraph(escape(table.floor.floor_name), styles['Normal']),
            Paragraph("Scan to order", styles['Italic']),
        ])

    if not cells:
        story.append(Paragraph("No active tables.", styles['Normal']))
    else:
        rows = [cells[i:i + 3] for i in range(0, len(cells), 3)]
        rows[-1] += [''] * (3 - len(rows[-1]))
        grid = Table(rows, colWidths=[60 * mm] * 3)
        grid.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ]))
        story.append(grid)

    doc.build(story)
    buffer.seek(0)
    return buffer.getvalue()
