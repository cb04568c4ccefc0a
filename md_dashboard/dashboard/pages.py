from __future__ import annotations
import html
import json
from typing import Any, Dict, List

from md_dashboard.forms.models import CHURN_REASONS, CS_TYPES, FORMS, INBOUND_SOURCES, FormSpec

NAV = [
    ("대시보드", "/dashboard"),
    ("업체 관리", "/dashboard/companies"),
    ("라이브(입점) 완료", "/dashboard/forms/live-complete"),
    ("CS 접수", "/dashboard/forms/cs"),
    ("인바운드 결과", "/dashboard/forms/inbound"),
    ("이탈/해지 우려", "/dashboard/forms/churn-risk"),
    ("보너스 지급", "/dashboard/bonus"),
]

# Inputs shown on each submission form; server-stamped fields are deliberately absent.
FORM_INPUTS: Dict[str, List[Dict[str, Any]]] = {
    "churn-risk": [
        {"name": "업체명", "type": "text"},
        {"name": "이탈사유", "type": "select", "options": CHURN_REASONS},
        {"name": "상세내용", "type": "textarea"},
        {"name": "대응방안", "type": "textarea"},
    ],
    "cs": [
        {"name": "업체명", "type": "text"},
        {"name": "CS유형", "type": "select", "options": CS_TYPES},
        {"name": "고객명", "type": "text"},
        {"name": "연락처", "type": "text"},
        {"name": "내용", "type": "textarea"},
    ],
    "inbound": [
        {"name": "업체명", "type": "text"},
        {"name": "인입경로", "type": "select", "options": INBOUND_SOURCES},
        {"name": "대표자명", "type": "text"},
        {"name": "연락처", "type": "text"},
        {"name": "지역", "type": "text"},
        {"name": "미팅결과", "type": "select", "options": FORMS["inbound"].statuses},
        {"name": "예상입점일", "type": "date"},
    ],
    "live-complete": [
        {"name": "업체명", "type": "text"},
        {"name": "입점완료일", "type": "date"},
        {"name": "라이브URL", "type": "url"},
        {"name": "특이사항", "type": "textarea"},
        {"name": "MD보너스", "type": "number"},
    ],
}

FORM_COLUMNS: Dict[str, List[str]] = {
    "churn-risk": ["업체명", "접수일", "이탈사유", "상세내용", "현재상태", "대응방안"],
    "cs": ["업체명", "접수일", "CS유형", "고객명", "내용", "처리상태"],
    "inbound": ["업체명", "인입일자", "인입경로", "대표자명", "지역", "미팅결과", "예상입점일"],
    "live-complete": ["업체명", "입점완료일", "라이브URL", "특이사항", "MD보너스"],
}

STYLE = """
    :root{--bg:#f8fafc; --card:#fff; --muted:#64748b; --fg:#1e293b; --accent:#2563eb; --accent2:#1d4ed8; --border:#e2e8f0}
    *{box-sizing:border-box}
    body{font-family:system-ui, sans-serif; margin:0; background:var(--bg); color:var(--fg);}
    a{color:var(--accent)}
    .layout{display:flex; min-height:100vh}
    .sidebar{width:220px; background:#0f172a; color:#cbd5e1; padding:20px 12px}
    .sidebar a{display:block; color:#cbd5e1; text-decoration:none; padding:8px 10px; border-radius:8px}
    .sidebar a.active, .sidebar a:hover{background:#1e293b; color:#fff}
    .brand{font-weight:800; letter-spacing:2px; margin:0 10px 18px}
    .container{flex:1; max-width:1100px; padding:24px}
    .card{background:var(--card); border:1px solid var(--border); border-radius:12px; padding:16px; margin:12px 0}
    .row{display:flex; gap:12px; flex-wrap:wrap}
    .stat{flex:1; min-width:180px}
    .stat .v{font-size:28px; font-weight:700}
    .muted{color:var(--muted); font-size:14px}
    input,textarea,select,button{padding:9px 11px; margin:6px 0; width:100%; border:1px solid var(--border); border-radius:8px; font:inherit}
    button{background:var(--accent); color:#fff; border:none; cursor:pointer; width:auto}
    button:hover{background:var(--accent2)}
    table{width:100%; border-collapse:collapse}
    th,td{padding:10px; border-bottom:1px solid var(--border); text-align:left; font-size:14px}
    th{background:#f1f5f9}
    .badge{display:inline-block; padding:3px 10px; border-radius:999px; background:#f1f5f9; font-size:12px}
"""

COMMON_JS = """
const token = localStorage.getItem('token')||'';
const me = JSON.parse(localStorage.getItem('user')||'null');
if(!token){ location.href='/'; }
async function api(path, opts){
  opts = opts||{};
  opts.headers = Object.assign({'Authorization':'Bearer '+token}, opts.body ? {'Content-Type':'application/json'} : {}, opts.headers||{});
  const r = await fetch(path, opts);
  const data = await r.json().catch(()=>({}));
  if(r.status===401){ localStorage.removeItem('token'); location.href='/'; }
  if(!r.ok){ throw new Error(data.message||('HTTP '+r.status)); }
  return data;
}
function esc(v){ return (v===undefined||v===null) ? '' : String(v).replace(/[&<>"']/g, c=>({'&':'&amp;','<':'&lt;','>':'&gt;','"':'&quot;',"'":'&#39;'}[c])); }
function won(n){ return new Intl.NumberFormat('ko-KR',{style:'currency',currency:'KRW',maximumFractionDigits:0}).format(n||0); }
function logout(){ localStorage.removeItem('token'); localStorage.removeItem('user'); location.href='/'; }
document.getElementById('who').textContent = me ? (me.name + ' (' + me.role + ')') : '';
"""


def page(title: str, body: str, active: str = "", script: str = "") -> str:
    links = "\n".join(
        f"<a href='{href}' class='{'active' if href == active else ''}'>{html.escape(label)}</a>"
        for label, href in NAV
    )
    return """<!doctype html>
<html lang='ko'>
<head>
  <meta charset='utf-8'/>
  <title>""" + html.escape(title) + """ | MD 대시보드</title>
  <style>""" + STYLE + """</style>
</head>
<body>
  <div class='layout'>
    <nav class='sidebar'>
      <div class='brand'>MD DASHBOARD</div>
      """ + links + """
      <div class='muted' id='who' style='margin:18px 10px 4px'></div>
      <a href='#' onclick='logout()'>로그아웃</a>
    </nav>
    <main class='container'>
""" + body + """
    </main>
  </div>
  <script>""" + COMMON_JS + script + """</script>
</body>
</html>
"""


def login_page() -> str:
    return """<!doctype html>
<html lang='ko'>
<head>
  <meta charset='utf-8'/>
  <title>로그인 | MD 대시보드</title>
  <style>""" + STYLE + """ .login{max-width:380px; margin:12vh auto}</style>
</head>
<body>
  <div class='login card'>
    <h1 style='margin-top:0'>MD 대시보드</h1>
    <p class='muted'>비밀번호는 등록된 연락처 뒷자리 4자리입니다.</p>
    <input id='email' type='email' placeholder='이메일'/>
    <input id='password' type='password' placeholder='비밀번호'/>
    <button onclick='login()' style='width:100%'>로그인</button>
    <p id='err' style='color:#dc2626'></p>
  </div>
  <script>
  async function login(){
    const err = document.getElementById('err'); err.textContent='';
    const body = {email: document.getElementById('email').value, password: document.getElementById('password').value};
    const r = await fetch('/api/auth/login', {method:'POST', headers:{'Content-Type':'application/json'}, body: JSON.stringify(body)});
    const data = await r.json().catch(()=>({}));
    if(!r.ok){ err.textContent = data.message || '로그인에 실패했습니다.'; return; }
    localStorage.setItem('token', data.token);
    localStorage.setItem('user', JSON.stringify(data.user));
    location.href = '/dashboard';
  }
  </script>
</body>
</html>
"""


def overview_page() -> str:
    body = """
      <h1>대시보드</h1>
      <p class='muted'>담당 업체 현황을 한눈에 확인하세요</p>
      <div class='row'>
        <div class='card stat'><div class='muted'>전체 업체</div><div class='v' id='s-total'>-</div></div>
        <div class='card stat'><div class='muted'>정상 운영</div><div class='v' id='s-active' style='color:#16a34a'>-</div></div>
        <div class='card stat'><div class='muted'>이탈 우려</div><div class='v' id='s-risk' style='color:#d97706'>-</div></div>
        <div class='card stat'><div class='muted'>월 총매출</div><div class='v' id='s-revenue'>-</div></div>
      </div>
      <div class='card'>
        <h2 style='margin-top:0'>담당 업체 현황</h2>
        <table><thead><tr><th>업체명</th><th>상태</th><th>계약상태</th><th>월매출</th></tr></thead>
        <tbody id='rows'><tr><td colspan='4' class='muted'>데이터를 불러오는 중...</td></tr></tbody></table>
      </div>
"""
    script = """
(async function(){
  const data = await api('/api/companies').catch(e=>({records:[]}));
  const recs = data.records||[];
  const f = r => r.fields||{};
  document.getElementById('s-total').textContent = recs.length;
  document.getElementById('s-active').textContent = recs.filter(r=>f(r).상태==='정상운영'||f(r).계약상태==='정상').length;
  document.getElementById('s-risk').textContent = recs.filter(r=>f(r).상태==='이탈우려'||f(r).계약상태==='주의').length;
  document.getElementById('s-revenue').textContent = won(recs.reduce((s,r)=>s+(f(r).월매출||0),0));
  document.getElementById('rows').innerHTML = recs.length ? recs.map(r=>`<tr><td>${esc(f(r).업체명)}</td><td><span class='badge'>${esc(f(r).상태||'-')}</span></td><td>${esc(f(r).계약상태||'-')}</td><td>${won(f(r).월매출)}</td></tr>`).join('')
    : "<tr><td colspan='4' class='muted'>담당 업체가 없습니다</td></tr>";
})();
"""
    return page("대시보드", body, "/dashboard", script)


def companies_page(statuses: List[str]) -> str:
    options = "".join(f"<option value='{html.escape(s)}'>{html.escape(s)}</option>" for s in statuses)
    body = """
      <h1>업체 관리</h1>
      <div class='row'>
        <div style='flex:2'><input id='search' placeholder='업체명 검색' oninput='render()'/></div>
        <div style='flex:1'><select id='status' onchange='render()'><option value='all'>전체 상태</option>""" + options + """</select></div>
      </div>
      <div class='card'>
        <table><thead><tr><th>업체명</th><th>상태</th><th>연락처</th><th>입점일</th><th>월매출</th><th>계약상태</th><th></th></tr></thead>
        <tbody id='rows'></tbody></table>
      </div>
"""
    script = """
let companies = [];
let editing = null;
const STATUSES = """ + json.dumps(statuses, ensure_ascii=False) + """;
function visible(){
  const q = document.getElementById('search').value.toLowerCase();
  const st = document.getElementById('status').value;
  return companies.filter(c => (c.fields.업체명||'').toLowerCase().includes(q) && (st==='all' || c.fields.상태===st));
}
function render(){
  const rows = visible();
  document.getElementById('rows').innerHTML = rows.length ? rows.map(c => {
    const f = c.fields;
    if(editing===c.id){
      const opts = STATUSES.map(s=>`<option ${s===f.상태?'selected':''}>${esc(s)}</option>`).join('');
      return `<tr><td>${esc(f.업체명)}</td><td><select id='e-상태'>${opts}</select></td><td><input id='e-연락처' value='${esc(f.연락처)}'/></td>
        <td>${esc(f.입점일)}</td><td><input id='e-월매출' type='number' value='${esc(f.월매출)}'/></td><td><input id='e-계약상태' value='${esc(f.계약상태)}'/></td>
        <td><button data-id='${esc(c.id)}' onclick='save(this.dataset.id)'>저장</button> <button onclick='editing=null;render()'>취소</button></td></tr>`;
    }
    return `<tr><td>${esc(f.업체명)}</td><td><span class='badge'>${esc(f.상태||'-')}</span></td><td>${esc(f.연락처)}</td><td>${esc(f.입점일)}</td>
      <td>${won(f.월매출)}</td><td>${esc(f.계약상태||'-')}</td><td><button data-id='${esc(c.id)}' onclick='editing=this.dataset.id;render()'>수정</button></td></tr>`;
  }).join('') : "<tr><td colspan='7' class='muted'>검색 결과가 없습니다</td></tr>";
}
async function save(id){
  const fields = {상태: document.getElementById('e-상태').value, 연락처: document.getElementById('e-연락처').value,
    월매출: Number(document.getElementById('e-월매출').value||0), 계약상태: document.getElementById('e-계약상태').value};
  try{
    await api('/api/companies/'+encodeURIComponent(id), {method:'PATCH', body: JSON.stringify(fields)});
    companies = companies.map(c => c.id===id ? {...c, fields: {...c.fields, ...fields}} : c);
    editing = null; render(); alert('저장되었습니다.');
  }catch(e){ alert(e.message); }
}
(async function(){ companies = (await api('/api/companies').catch(()=>({records:[]}))).records||[]; render(); })();
"""
    return page("업체 관리", body, "/dashboard/companies", script)


def _input_html(spec: FormSpec, field: Dict[str, Any]) -> str:
    name = field["name"]
    req = " required" if name in spec.required else ""
    label = html.escape(name) + (" *" if req else "")
    if field["type"] == "select":
        opts = "".join(f"<option value='{html.escape(o)}'>{html.escape(o)}</option>" for o in field["options"])
        control = f"<select name='{name}'{req}><option value=''>선택하세요</option>{opts}</select>"
    elif field["type"] == "textarea":
        control = f"<textarea name='{name}' rows='3'{req}></textarea>"
    else:
        control = f"<input name='{name}' type='{field['type']}'{req}/>"
    return f"<label class='muted'>{label}</label>{control}"


def form_page(spec: FormSpec) -> str:
    inputs = "\n".join(_input_html(spec, f) for f in FORM_INPUTS[spec.slug])
    columns = FORM_COLUMNS[spec.slug] + [spec.status_field]
    columns = list(dict.fromkeys(columns))
    head = "".join(f"<th>{html.escape(c)}</th>" for c in columns)
    analytics = ""
    if spec.slug == "inbound":
        analytics = """
      <div class='card'>
        <div class='row' style='align-items:center'>
          <h2 style='margin:0; flex:1'>인바운드 성과</h2>
          <select id='period' style='width:160px' onchange='renderAnalytics()'>
            <option value='daily'>일간</option><option value='weekly'>주간</option><option value='monthly' selected>월간</option>
          </select>
        </div>
        <div class='row'>
          <div class='stat'><div class='muted'>성공률</div><div class='v' id='a-success'>-</div></div>
          <div class='stat'><div class='muted'>진행률</div><div class='v' id='a-progress'>-</div></div>
          <div class='stat'><div class='muted'>건수</div><div class='v' id='a-total'>-</div></div>
        </div>
      </div>
"""
    body = """
      <h1>""" + html.escape(spec.label) + """</h1>
      <div class='row' id='counts'></div>
""" + analytics + """
      <div class='card'>
        <button onclick="document.getElementById('form').style.display='block'">새로 작성</button>
        <form id='form' style='display:none' onsubmit='submitForm(event)'>
""" + inputs + """
          <button type='submit'>제출</button>
        </form>
      </div>
      <div class='card'>
        <table><thead><tr>""" + head + """</tr></thead><tbody id='rows'></tbody></table>
      </div>
"""
    script = """
const SLUG = """ + json.dumps(spec.slug) + """;
const COLUMNS = """ + json.dumps(columns, ensure_ascii=False) + """;
const STATUS_FIELD = """ + json.dumps(spec.status_field, ensure_ascii=False) + """;
const STATUSES = """ + json.dumps(spec.statuses, ensure_ascii=False) + """;
let records = [];
function render(){
  const counts = {}; STATUSES.forEach(s=>counts[s]=0);
  records.forEach(r=>{ const s=(r.fields||{})[STATUS_FIELD]; if(s in counts) counts[s]++; });
  document.getElementById('counts').innerHTML = STATUSES.map(s=>`<div class='card stat'><div class='muted'>${esc(s)}</div><div class='v'>${counts[s]}</div></div>`).join('');
  document.getElementById('rows').innerHTML = records.length ? records.map(r=>'<tr>'+COLUMNS.map(c=>`<td>${esc((r.fields||{})[c])}</td>`).join('')+'</tr>').join('')
    : `<tr><td colspan='${COLUMNS.length}' class='muted'>등록된 내역이 없습니다</td></tr>`;
  if(typeof renderAnalytics==='function' && document.getElementById('period')) renderAnalytics();
}
function renderAnalytics(){
  const days = {daily:1, weekly:7, monthly:30}[document.getElementById('period').value];
  const from = new Date(Date.now() - days*86400000).toISOString().slice(0,10);
  const to = new Date().toISOString().slice(0,10);
  const bucket = records.filter(r=>{ const d=(r.fields.인입일자||'').slice(0,10); return d && d>=from && d<=to; });
  const n = s => bucket.filter(r=>r.fields.미팅결과===s).length;
  const done = n('계약완료'), rej = n('거절'), pending = n('미팅예정')+n('미팅완료')+n('계약진행중');
  document.getElementById('a-success').textContent = (done+rej ? Math.round(done/(done+rej)*1000)/10 : 0).toFixed(1)+'%';
  document.getElementById('a-progress').textContent = (bucket.length ? Math.round((done+pending)/bucket.length*1000)/10 : 0).toFixed(1)+'%';
  document.getElementById('a-total').textContent = bucket.length;
}
async function load(){ records = (await api('/api/forms/'+SLUG).catch(()=>({records:[]}))).records||[]; render(); }
async function submitForm(e){
  e.preventDefault();
  const body = {};
  new FormData(e.target).forEach((v,k)=>{ if(v!=='') body[k] = (e.target.elements[k].type==='number') ? Number(v) : v; });
  try{
    const data = await api('/api/forms/'+SLUG, {method:'POST', body: JSON.stringify(body)});
    alert(data.message); e.target.reset(); e.target.style.display='none'; load();
  }catch(err){ alert(err.message); }
}
load();
"""
    return page(spec.label, body, f"/dashboard/forms/{spec.slug}", script)


def bonus_page() -> str:
    body = """
      <h1>보너스 지급</h1>
      <p class='muted'>입점완료일 기준 2개월 후 5일에 지급됩니다.</p>
      <div id='groups'><p class='muted'>데이터를 불러오는 중...</p></div>
"""
    script = """
const isAdmin = me && me.role==='admin';
function payDate(s){
  const d = (s||'').slice(0,10); if(!/^\\d{4}-\\d{2}-\\d{2}$/.test(d)) return null;
  let y = Number(d.slice(0,4)), m = Number(d.slice(5,7)) - 1 + 2;
  y += Math.floor(m/12); m = m % 12 + 1;
  return y + '-' + String(m).padStart(2,'0') + '-05';
}
let records = [];
function render(){
  const groups = {};
  records.forEach(r=>{
    const p = payDate(r.fields.입점완료일 || r.fields.제출일시); if(!p) return;
    (groups[p] = groups[p] || {recs:[], md:0, admin:0});
    groups[p].recs.push(r); groups[p].md += Number(r.fields.MD보너스||0); groups[p].admin += Number(r.fields.관리자보너스||0);
  });
  const keys = Object.keys(groups).sort();
  document.getElementById('groups').innerHTML = keys.length ? keys.map(k=>{
    const g = groups[k];
    const rows = g.recs.map(r=>`<tr><td>${esc(r.fields.업체명)}</td><td>${esc(r.fields.담당MD)}</td><td>${esc((r.fields.입점완료일||'').slice(0,10))}</td>
      <td><input type='number' id='md-${esc(r.id)}' value='${esc(r.fields.MD보너스)}' ${isAdmin || r.fields.담당MD===me.name ? '' : 'disabled'}/></td>
      <td><input type='number' id='ad-${esc(r.id)}' value='${esc(r.fields.관리자보너스)}' ${isAdmin?'':'disabled'}/></td>
      <td><input id='nt-${esc(r.id)}' value='${esc(r.fields.관리자보너스메모)}' ${isAdmin?'':'disabled'}/></td>
      <td><button data-id='${esc(r.id)}' onclick='save(this.dataset.id)'>저장</button></td></tr>`).join('');
    return `<div class='card'><h2 style='margin-top:0'>${k} 지급</h2>
      <p class='muted'>MD 보너스 합계 ${won(g.md)} · 관리자 보너스 합계 ${won(g.admin)}</p>
      <table><thead><tr><th>업체명</th><th>담당MD</th><th>입점완료일</th><th>MD보너스</th><th>관리자보너스</th><th>메모</th><th></th></tr></thead><tbody>${rows}</tbody></table></div>`;
  }).join('') : "<p class='muted'>지급 예정 내역이 없습니다</p>";
}
async function save(id){
  const body = {id: id};
  const md = document.getElementById('md-'+id).value;
  if(md !== '') body.MD보너스 = Number(md);
  if(isAdmin){ body.관리자보너스 = Number(document.getElementById('ad-'+id).value||0); body.관리자보너스메모 = document.getElementById('nt-'+id).value; }
  try{
    const data = await api('/api/forms/live-complete', {method:'PATCH', body: JSON.stringify(body)});
    records = records.map(r => r.id===id ? {...r, fields: {...r.fields, ...data.fields}} : r);
    render(); alert(data.message);
  }catch(e){ alert(e.message); }
}
(async function(){ records = (await api('/api/forms/live-complete').catch(()=>({records:[]}))).records||[]; render(); })();
"""
    return page("보너스 지급", body, "/dashboard/bonus", script)
