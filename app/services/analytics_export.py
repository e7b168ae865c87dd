import io

from openpyxl import Workbook
from openpyxl.chart import BarChart, Reference
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from app.services.analytics import AnalyticsSnapshot

THIN = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill("solid", fgColor="4F81BD")
CENTER = Alignment(horizontal="center")
CURRENCY = "₹#,##0.00"


def _header(ws, *titles):
    ws.append(list(titles))
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN
        cell.alignment = CENTER


def _body(ws, currency_cols=()):
    for row in ws.iter_rows(min_row=2):
        for idx, cell in enumerate(row):
            cell.border = THIN
            cell.alignment = CENTER
            if idx in currency_cols:
                cell.number_format = CURRENCY


def build_analytics_workbook(snapshot: AnalyticsSnapshot) -> io.BytesIO:
    wb = Workbook()

    # Sheet 1: Overview
    ws = wb.active
    ws.title = "Overview"
    _header(ws, "Metric", "Value")
    ws.append(["Total Revenue", snapshot.total_revenue])
    ws.append(["Total Orders", snapshot.total_orders])
    ws.append(["Average Order Value", snapshot.avg_order_value])
    ws.append(["Revenue This Month", snapshot.revenue_this_month])
    ws.append(["Revenue Last Month", snapshot.revenue_last_month])
    ws.append(["Revenue Growth %", snapshot.revenue_growth])
    ws.append(["Orders Growth %", snapshot.order_growth])
    _body(ws)
    for row in (2, 4, 5, 6):
        ws.cell(row=row, column=2).number_format = CURRENCY

    # Sheet 2: Revenue by category, with chart
    ws2 = wb.create_sheet("Categories")
    _header(ws2, "Category", "Revenue")
    for c in snapshot.revenue_by_category:
        ws2.append([c.name, c.revenue])
    _body(ws2, currency_cols=(1,))

    if snapshot.revenue_by_category:
        rows = len(snapshot.revenue_by_category) + 1
        chart = BarChart()
        chart.title = "Revenue by Category"
        chart.add_data(Reference(ws2, min_col=2, min_row=1, max_row=rows), titles_from_data=True)
        chart.set_categories(Reference(ws2, min_col=1, min_row=2, max_row=rows))
        ws2.add_chart(chart, "D3")

    # Sheet 3: Best sellers
    ws3 = wb.create_sheet("Best Sellers")
    _header(ws3, "Title", "Author", "Units Sold", "Revenue")
    for b in snapshot.best_selling_books:
        ws3.append([b.title, b.author, b.quantity, b.revenue])
    _body(ws3, currency_cols=(3,))

    # Sheet 4: Status breakdown
    ws4 = wb.create_sheet("Status")
    _header(ws4, "Status", "Orders")
    for s in snapshot.sales_by_status:
        ws4.append([s.status, s.count])
    _body(ws4)

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer
